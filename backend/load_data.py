"""
Data Loader Script - Loads students.json into the platform via API.

Reads a JSON array of student objects and POSTs each one to /students.
Existing IDs are reported as duplicates, invalid entries as rejected.

Usage:
    python load_data.py                                   # Uses default URL and file
    python load_data.py http://localhost:8000             # Custom API URL
    python load_data.py http://localhost:8000 seed.json   # Custom API URL and file
"""

import json
import sys
import os

import httpx


def load_students(path):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("{} must contain a JSON array of students".format(path))
    return data


def post_students(client, students):
    """
    POST each student and tally the outcome.

    Returns a dict with created, duplicates and rejected counts, plus the
    error message of every rejected entry.
    """
    summary = {"created": 0, "duplicates": 0, "rejected": 0, "errors": []}
    for student in students:
        resp = client.post("/students", json=student)
        if resp.status_code == 201:
            summary["created"] += 1
        elif resp.status_code == 409:
            summary["duplicates"] += 1
        else:
            summary["rejected"] += 1
            try:
                error = resp.json().get("error")
            except ValueError:
                error = resp.text
            summary["errors"].append({"studentID": student.get("studentID"), "error": error})
    return summary


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:3000")
    data_file = sys.argv[2] if len(sys.argv) > 2 else os.getenv("STUDENTS_SEED_FILE", "students.json")

    if not os.path.exists(data_file):
        print(f"Error: Could not find {data_file}")
        sys.exit(1)

    students = load_students(data_file)
    print(f"Loading {len(students)} students from {data_file}")
    print(f"Sending to {api_url}/students")

    with httpx.Client(base_url=api_url, timeout=30.0) as client:
        summary = post_students(client, students)

    print(f"\n{'='*50}")
    print(f"  Created:    {summary['created']}")
    print(f"  Duplicates: {summary['duplicates']}")
    print(f"  Rejected:   {summary['rejected']}")
    print(f"{'='*50}")
    for error in summary["errors"]:
        print(f"  {error['studentID']}: {error['error']}")


if __name__ == "__main__":
    main()
