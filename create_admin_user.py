"""
Utility script to create an admin user for SupplyHub.
Admins are the role allowed to run batch imports by default.

Usage:
    python create_admin_user.py
    python create_admin_user.py --test  # creates admin@test.com / 12345678
"""
from supplyhub.db.session import get_engine
from supplyhub.core.security import create_access_token, create_user, init_auth_tables
from sqlalchemy.orm import Session
import argparse
import getpass


def parse_args():
    parser = argparse.ArgumentParser(
        description="Create an admin user for local development environments."
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Create a default test admin (admin@test.com / 12345678) without prompts.",
    )
    return parser.parse_args()


def main():
    args = parse_args()

    print("=" * 60)
    print("SupplyHub - Create Admin User")
    print("=" * 60)
    print()

    engine = get_engine()
    init_auth_tables(engine)
    print("✓ Database tables initialized")

    if args.test:
        email = "admin@test.com"
        full_name = "Test Admin"
        password = "12345678"
        print("Creating default test admin: admin@test.com / 12345678")
    else:
        email = input("Enter email address: ").strip()
        if not email:
            print("Error: Email is required")
            return

        full_name = input("Enter full name (optional): ").strip() or None

        password = getpass.getpass("Enter password: ")
        password_confirm = getpass.getpass("Confirm password: ")

        if password != password_confirm:
            print("Error: Passwords do not match")
            return

    with Session(engine) as db:
        try:
            user = create_user(
                db=db,
                email=email,
                password=password,
                full_name=full_name,
                role="admin"
            )
        except Exception as e:
            print(f"Error creating user: {e}")
            return

        print()
        print("=" * 60)
        print("✓ User created successfully!")
        print("=" * 60)
        print(f"Email: {user.email}")
        print(f"Name: {user.full_name or 'N/A'}")
        print(f"Access token: {create_access_token({'sub': user.email})}")


if __name__ == "__main__":
    main()
