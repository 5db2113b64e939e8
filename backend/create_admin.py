"""
Admin bootstrap script: hash a password or create the first admin user.

Print a hash and a ready-to-paste INSERT statement:
    python create_admin.py "my-secure-password"

Create the user directly in the configured DATABASE_URL:
    python create_admin.py "my-secure-password" --create \\
        --email admin@example.com --name "Site Admin" --role superadmin
"""
import argparse
import sys

from formsdesk.database import SessionLocal, init_db
from formsdesk.exceptions import ValidationError
from formsdesk.models.admin_user import AdminUser, Role
from formsdesk.utils.passwords import hash_password


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Hash an admin password or create an admin user")
    parser.add_argument("password", help="plaintext password to hash")
    parser.add_argument("--create", action="store_true", help="insert the user instead of printing SQL")
    parser.add_argument("--email", default="admin@example.com")
    parser.add_argument("--name", default="Admin Name")
    parser.add_argument("--role", default=Role.ADMIN.value, choices=[role.value for role in Role])
    parser.add_argument("--tenant", default="default", help="tenant id for admin and viewer roles")
    return parser.parse_args(argv)


def print_sql(args, password_hash: str) -> None:
    role = Role(args.role)
    tenant = f"'{args.tenant}'" if role.requires_tenant else "NULL"

    print("\nPassword hash generated successfully!\n")
    print("Hash:")
    print(password_hash)
    print("\nUse this SQL to create an admin user:\n")
    print("INSERT INTO admin_users (email, password_hash, name, role, tenant_id, notify_forms, is_active)")
    print(f"VALUES ('{args.email}', '{password_hash}', '{args.name}', '{role.value}', {tenant}, 'none', 1);\n")


def create_user(args, password_hash: str) -> int:
    init_db()
    role = Role(args.role)
    db = SessionLocal()
    try:
        if db.query(AdminUser.id).filter(AdminUser.email == args.email).first():
            print(f"  ❌ A user with email {args.email} already exists")
            return 1

        user = AdminUser(
            email=args.email,
            password_hash=password_hash,
            name=args.name,
            role=role.value,
            tenant_id=args.tenant if role.requires_tenant else None,
        )
        db.add(user)
        db.commit()
        print(f"  ✓ Created {role.value} {user.email} (id {user.id})")
        return 0
    except ValidationError as e:
        db.rollback()
        print(f"  ❌ {e.message}")
        return 1
    finally:
        db.close()


def main(argv=None) -> int:
    args = parse_args(argv)
    if len(args.password) < 8:
        print("  ❌ Password must be at least 8 characters")
        return 1

    password_hash = hash_password(args.password)
    if args.create:
        return create_user(args, password_hash)

    print_sql(args, password_hash)
    return 0


if __name__ == "__main__":
    sys.exit(main())
