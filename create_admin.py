import argparse
import os
from nexus import create_app
from nexus.models import User
from nexus.models.enums import UserRole
from nexus.extensions import db
from werkzeug.security import generate_password_hash


def create_super_admin(email, password, name="Platform Admin", update=False):
    app = create_app()
    with app.app_context():
        db.create_all()
        email = email.strip().lower()
        admin = User.query.filter_by(email=email).first()
        if not admin:
            admin = User(
                email=email,
                password=generate_password_hash(password),
                name=name,
                role=UserRole.SUPER_ADMIN.value,
            )
            db.session.add(admin)
            db.session.commit()
            print("Super-admin user created successfully!")
        elif update:
            admin.password = generate_password_hash(password)
            admin.role = UserRole.SUPER_ADMIN.value
            db.session.commit()
            print("Super-admin user updated successfully!")
        else:
            print("Super-admin user already exists!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or update the platform super-admin")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@example.com"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--name", default="Platform Admin")
    parser.add_argument("--update", action="store_true")
    args = parser.parse_args()
    if not args.password:
        parser.error("--password (or ADMIN_PASSWORD) is required")
    create_super_admin(args.email, args.password, args.name, update=args.update)
