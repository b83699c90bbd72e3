"""One-time DB setup: create tables and seed an admin, a player, sample quizzes and prizes."""
from app.core.security import hash_password
from app.db.models import Prize, Quiz, RoleEnum, User
from app.db.session import get_session_factory, init_db
from app.services import authoring

SAMPLE_QUIZZES = [
    {
        "title": "General Knowledge Quiz",
        "description": "Test your general knowledge",
        "questions": [
            {"text": "What is the capital of France?", "options": '["London", "Berlin", "Paris", "Madrid"]'},
            {"text": "Which planet is known as the Red Planet?", "options": ["Venus", "Mars", "Jupiter", "Saturn"]},
        ],
    },
    {
        "title": "Science Quiz",
        "description": "Test your science knowledge",
        "questions": [
            {"text": "What is the chemical symbol for water?", "options": "H2O|CO2|NaCl|O2"},
            {"text": "How many bones are in the human body?", "options": ["206", "208", "210", "212"]},
        ],
    },
]

SAMPLE_PRIZES = [
    {"name": "Mobile Top-up (100 PKR)", "category": "mobile", "points_required": 50, "stock": 100},
    {"name": "Wireless Earbuds", "category": "electronics", "points_required": 500, "stock": 10},
]

# 1. Create all tables
init_db()
print("✅ All tables created")

session_factory = get_session_factory()
with session_factory() as db:
    # 2. Admin user
    if not db.query(User).filter(User.email == "admin@example.com").first():
        db.add(
            User(
                email="admin@example.com",
                hashed_password=hash_password("admin123"),
                name="Admin User",
                role=RoleEnum.ADMIN,
            )
        )
        db.commit()
        print("✅ Created admin: admin@example.com / admin123")
    else:
        print("  Admin user already exists")

    # 3. Demo player
    if not db.query(User).filter(User.email == "player@example.com").first():
        db.add(
            User(
                email="player@example.com",
                hashed_password=hash_password("player123"),
                name="Test User",
                phone="03001234567",
            )
        )
        db.commit()
        print("✅ Created player: player@example.com / player123")
    else:
        print("  Player user already exists")

    # 4. Sample quizzes (options deliberately in all three accepted shapes)
    for quiz_def in SAMPLE_QUIZZES:
        if db.query(Quiz).filter(Quiz.title == quiz_def["title"]).first():
            print(f"  Quiz '{quiz_def['title']}' already exists")
            continue
        authoring.create_quiz(
            db, quiz_def["title"], questions=quiz_def["questions"], description=quiz_def["description"]
        )
        db.commit()
        print(f"✅ Created quiz '{quiz_def['title']}'")

    # 5. Prize catalogue
    for fields in SAMPLE_PRIZES:
        if not db.query(Prize).filter(Prize.name == fields["name"]).first():
            db.add(Prize(**fields))
            db.commit()
            print(f"✅ Created prize '{fields['name']}'")

print("\n🎉 Seed complete")
