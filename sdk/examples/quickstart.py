"""SoulSync quickstart example

This script walks through:
1. Registering an account
2. Answering both quiz phases
3. Resolving matches until the daily quota runs out
4. Logging out
"""
import os
import random
import uuid

from soulsync_client import SoulSyncClient

# Configuration
BACKEND_URL = os.getenv("SOULSYNC_URL", "http://localhost:8000")


def pick(question):
    if question["type"] == "scale":
        return random.randint(question["min_value"], question["max_value"])
    if question["type"] == "multiple":
        return random.choice(question["options"])
    return random.random() < 0.5


def main():
    print("=" * 60)
    print("SoulSync Quickstart Demo")
    print("=" * 60)

    client = SoulSyncClient(base_url=BACKEND_URL)
    email = f"quickstart-{uuid.uuid4().hex[:8]}@example.com"
    client.register(email=email, password="quickstart-pass", name="Quinn", age=30, location="Lisbon")
    print(f"1. Registered {email} as {client.identity_id}")

    personality = client.personality_quiz()
    client.submit_answers({q["question_id"]: pick(q) for q in personality})
    compatibility = client.compatibility_quiz()
    answers = client.submit_answers({q["question_id"]: pick(q) for q in compatibility})
    print(f"2. Answered {answers['answered']} questions")

    print("3. Resolving matches...")
    while True:
        outcome = client.resolve_match()
        if outcome["status"] == "resolved":
            print(f"   {outcome['candidate']['name']} scored {outcome['score']:.1f} "
                  f"({outcome['remaining_quota_today']} left today)")
            client.reject_match(outcome["candidate_id"])
        elif outcome["status"] == "exhausted":
            print("   Nobody left to match today")
        else:
            print(f"   Quota used up until {outcome['reset_at']}")
            break

    client.logout()
    print("4. Logged out")


if __name__ == "__main__":
    main()
