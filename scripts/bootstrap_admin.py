import os

from pac_portal.db import models
from pac_portal.db.session import SessionLocal


def main() -> None:
    email = os.getenv("ADMIN_BOOTSTRAP_EMAIL")
    if not email:
        raise SystemExit("ADMIN_BOOTSTRAP_EMAIL nao definido.")
    email = email.strip().lower()

    db = SessionLocal()
    try:
        profile = db.query(models.Profile).filter(models.Profile.email == email).first()
        if not profile:
            raise SystemExit(f"Perfil nao encontrado para {email}. Crie o usuario antes de promover.")
        profile.role = "admin"
        profile.status = True
        db.commit()
        print(f"Admin ativo: {profile.email}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
