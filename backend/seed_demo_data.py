"""
Demo Data Seeder for SoulSync

Creates:
- The question bank
- 8 verified demo members with random quiz answers (one premium)
- 1 unverified member, who can resolve but is never offered as a candidate

Every demo member's password is "soulsync-demo". Run from the backend directory:
    python seed_demo_data.py
"""
import random
from typing import Any, Dict, List

from soulsync.database import SessionLocal, init_db
from soulsync.errors import IdentityConflict
from soulsync.models.identity import TIER_PREMIUM, Identity
from soulsync.services.accounts import AccountService, normalize_email
from soulsync.services.questions import QuestionBank
from soulsync.services.scoring import QuestionItem
from soulsync.utils.auth import Argon2PasswordVerifier
from soulsync.utils.clock import SystemClock

DEMO_PASSWORD = "soulsync-demo"

DEMO_MEMBERS = [
    {"name": "Ava", "age": 29, "location": "Lisbon", "interests": ["surfing", "jazz", "cooking"]},
    {"name": "Ben", "age": 33, "location": "Lisbon", "interests": ["climbing", "board games"]},
    {"name": "Chloe", "age": 27, "location": "Porto", "interests": ["photography", "travel"]},
    {"name": "Dev", "age": 31, "location": "Lisbon", "interests": ["running", "sci-fi", "coffee"]},
    {"name": "Elena", "age": 35, "location": "Madrid", "interests": ["yoga", "wine", "museums"]},
    {"name": "Felix", "age": 30, "location": "Porto", "interests": ["cycling", "cooking"]},
    {"name": "Grace", "age": 26, "location": "Lisbon", "interests": ["theatre", "hiking"], "premium": True},
    {"name": "Hugo", "age": 38, "location": "Madrid", "interests": ["football", "history"]},
    {"name": "Iris", "age": 24, "location": "Lisbon", "interests": ["dancing"], "verified": False},
]


def random_answer(question: QuestionItem, rng: random.Random) -> Any:
    """Pick a valid raw answer for any question type"""
    if question.type == "scale":
        return rng.randint(question.min_value, question.max_value)
    if question.type == "multiple":
        return rng.choice(question.options)
    return rng.random() < 0.5


def seed_demo_data(seed: int = 42) -> List[Dict[str, Any]]:
    rng = random.Random(seed)
    init_db()
    db = SessionLocal()
    try:
        bank = QuestionBank(db)
        added = bank.seed()
        print(f"[+] Question bank: {added} new questions")
        questions = bank.all()

        accounts = AccountService(db, SystemClock(), Argon2PasswordVerifier())
        created = []
        for member in DEMO_MEMBERS:
            email = normalize_email(f"{member['name']}@demo.soulsync.app")
            try:
                identity = accounts.register(
                    email=email,
                    password=DEMO_PASSWORD,
                    name=member["name"],
                    age=member["age"],
                    location=member["location"],
                    interests=member["interests"],
                    bio=f"Hi, I'm {member['name']}.",
                )
            except IdentityConflict:
                print(f"[=] {email} already exists, skipping")
                continue

            identity.is_verified = member.get("verified", True)
            if member.get("premium"):
                identity.tier = TIER_PREMIUM
            db.commit()

            bank.submit_answers(identity.identity_id, {q.question_id: random_answer(q, rng) for q in questions})
            created.append({"email": email, "identity_id": identity.identity_id, "tier": identity.tier})
            print(f"[+] {member['name']:<6} {identity.identity_id}  tier={identity.tier}")

        total = db.query(Identity).count()
    finally:
        db.close()

    print("\n" + "=" * 50)
    print("Demo data seeding complete!")
    print(f"Members created: {len(created)} (total {total})")
    print(f"Password for all demo members: {DEMO_PASSWORD}")
    return created


if __name__ == "__main__":
    seed_demo_data()
