"""
Seed Script - Loads sample_questions.json into the question bank via the API.

Posts the questions to the bulk-create endpoint, then authors a test from
the ids that come back, and prints a summary.

Usage:
    python seed_questions.py                              # Uses default URL
    python seed_questions.py http://localhost:8000         # Custom API URL
    python seed_questions.py http://backend:8000           # Inside Docker network
"""

import json
import sys
import os

import httpx


def post_json(client: httpx.Client, url: str, data):
    resp = client.post(url, json=data)
    if resp.status_code >= 400:
        print(f"HTTP Error {resp.status_code}: {resp.text}")
        sys.exit(1)
    return resp.json()


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")

    # Locate the data file
    data_file = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "sample_questions.json")
    if not os.path.exists(data_file):
        data_file = "sample_questions.json"

    if not os.path.exists(data_file):
        print("Error: Could not find sample_questions.json")
        sys.exit(1)

    print(f"Loading questions from: {data_file}")
    with open(data_file, 'r') as f:
        questions = json.load(f)

    print(f"Found {len(questions)} questions to insert")
    print(f"Sending to: {api_url}")
    print()

    with httpx.Client(timeout=30.0) as client:
        created = post_json(client, f"{api_url}/api/questions/create", questions)
        question_ids = created.get("questionIds", [])

        test = post_json(client, f"{api_url}/api/tests/create", {
            "name": "Sample Test",
            "description": "Every question from sample_questions.json",
            "durationInMinutes": 30,
            "questionIds": question_ids,
        })

    print("=" * 60)
    print("SEED SUMMARY")
    print("=" * 60)
    print(f"  {created.get('message', '?')}")
    print(f"  Question IDs:  {question_ids}")
    print(f"  {test.get('message', '?')}")
    print(f"  Test ID:       {test.get('testId', '?')}")
    print("=" * 60)
    print()
    print(f"Done. Browse {api_url}/api/tests/{test.get('testId')} to see the test.")


if __name__ == "__main__":
    main()
