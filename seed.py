from bathroom_scheduler import create_app, db
from bathroom_scheduler.models import User
from werkzeug.security import generate_password_hash

app = create_app()

with app.app_context():
    db.create_all()

    # Create Admin
    if not User.query.filter_by(username='admin').first():
        admin = User(
            username='admin',
            email='admin@home.local',
            display_name='House Admin',
            password_hash=generate_password_hash('password', method='pbkdf2:sha256'),
            role='admin'
        )
        db.session.add(admin)
        print("Admin created (admin/password)")

    # Create household members
    members_data = [
        {"username": "roommate1", "display_name": "Roommate 1", "email": "roommate1@home.local"},
        {"username": "roommate2", "display_name": "Roommate 2", "email": "roommate2@home.local"},
        {"username": "roommate3", "display_name": "Roommate 3", "email": "roommate3@home.local"},
    ]

    for m_data in members_data:
        if not User.query.filter_by(username=m_data['username']).first():
            member = User(
                username=m_data['username'],
                display_name=m_data['display_name'],
                email=m_data['email'],
                password_hash=generate_password_hash('password', method='pbkdf2:sha256')
            )
            db.session.add(member)
            print(f"Member {member.display_name} created.")

    db.session.commit()
    print("Database seeded successfully.")
