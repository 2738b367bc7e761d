# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the organizational structure and the first admin.

Run once after the initial migration:
    python bin/seed.py

Seeds the four organizational units with their divisions, then creates the
admin account from FIRST_ADMIN_EMAIL / FIRST_ADMIN_USERNAME /
FIRST_ADMIN_PASSWORD in etc/app.conf.  Rows that already exist (matched by
code or email) are left alone, so the script is safe to re-run.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from core.config import settings                             # noqa: E402
from core.logger import logger                               # noqa: E402
from core.security import hash_password                      # noqa: E402
from database import SessionLocal                            # noqa: E402
from models.organization import Division, OrganizationalUnit # noqa: E402
from models.user import User                                 # noqa: E402
import models.credential                                     # noqa: F401, E402
import models.activity_log                                   # noqa: F401, E402
import models.password_reset_token                           # noqa: F401, E402

# (name, code, description, [(division name, code, description), ...])
STRUCTURE = [
    ("News Management", "NEWS", "Manages all news-related content and operations", [
        ("Editorial", "NEWS-EDIT", "Content editing and management"),
        ("IT", "NEWS-IT", "IT infrastructure and support"),
        ("Finance", "NEWS-FIN", "Financial operations"),
        ("Content Writing", "NEWS-WRITE", "Content creation and writing"),
        ("Social Media", "NEWS-SOCIAL", "Social media management"),
        ("SEO", "NEWS-SEO", "Search engine optimization"),
        ("Video Production", "NEWS-VIDEO", "Video content production"),
        ("Photography", "NEWS-PHOTO", "Photography and image management"),
        ("Legal", "NEWS-LEGAL", "Legal affairs and compliance"),
        ("HR", "NEWS-HR", "Human resources"),
        ("Marketing", "NEWS-MKTG", "Marketing and promotion"),
        ("Analytics", "NEWS-ANALYTICS", "Data analytics and reporting"),
    ]),
    ("Software Reviews", "SOFTWARE", "Handles software review content and operations", [
        ("Development", "SOFT-DEV", "Software development team"),
        ("Testing", "SOFT-TEST", "Quality assurance and testing"),
        ("Finance", "SOFT-FIN", "Financial operations"),
        ("Product Review", "SOFT-REVIEW", "Software product reviews"),
        ("Research", "SOFT-RESEARCH", "Product research and analysis"),
        ("Content Creation", "SOFT-CONTENT", "Review content creation"),
        ("DevOps", "SOFT-DEVOPS", "DevOps and infrastructure"),
        ("Security", "SOFT-SEC", "Security and compliance"),
        ("Support", "SOFT-SUPPORT", "Technical support"),
        ("Partnerships", "SOFT-PARTNER", "Vendor partnerships"),
        ("IT", "SOFT-IT", "IT infrastructure"),
        ("Marketing", "SOFT-MKTG", "Marketing and promotion"),
    ]),
    ("Hardware Reviews", "HARDWARE", "Manages hardware review content and operations", [
        ("Lab Operations", "HW-LAB", "Hardware testing lab"),
        ("IT", "HW-IT", "IT infrastructure"),
        ("Finance", "HW-FIN", "Financial operations"),
        ("Product Testing", "HW-TEST", "Hardware product testing"),
        ("Benchmarking", "HW-BENCH", "Performance benchmarking"),
        ("Review Writing", "HW-WRITE", "Review content writing"),
        ("Photography", "HW-PHOTO", "Product photography"),
        ("Video Production", "HW-VIDEO", "Video review production"),
        ("Procurement", "HW-PROC", "Hardware procurement"),
        ("Inventory", "HW-INV", "Inventory management"),
        ("Logistics", "HW-LOG", "Shipping and logistics"),
        ("Vendor Relations", "HW-VENDOR", "Vendor relationships"),
    ]),
    ("Opinion Publishing", "OPINION", "Handles opinion and editorial content", [
        ("Writing", "OPIN-WRITE", "Content writing team"),
        ("Finance", "OPIN-FIN", "Financial operations"),
        ("Editorial", "OPIN-EDIT", "Editorial oversight"),
        ("Fact Checking", "OPIN-FACT", "Fact checking and verification"),
        ("Research", "OPIN-RESEARCH", "Research and investigation"),
        ("Opinion Writing", "OPIN-OPINION", "Opinion piece writing"),
        ("Column Management", "OPIN-COL", "Column and series management"),
        ("Guest Writers", "OPIN-GUEST", "Guest writer coordination"),
        ("Legal Review", "OPIN-LEGAL", "Legal review and compliance"),
        ("Social Media", "OPIN-SOCIAL", "Social media engagement"),
        ("Community", "OPIN-COMM", "Community engagement"),
        ("IT", "OPIN-IT", "IT infrastructure and support"),
    ]),
]


def seed_structure(db) -> int:
    """Insert missing OUs and divisions.  Returns the number of rows added."""
    added = 0
    for ou_name, ou_code, ou_desc, divisions in STRUCTURE:
        ou = db.query(OrganizationalUnit).filter(OrganizationalUnit.code == ou_code).first()
        if not ou:
            ou = OrganizationalUnit(name=ou_name, code=ou_code, description=ou_desc, is_active=True)
            db.add(ou)
            db.flush()
            added += 1
        for name, code, desc in divisions:
            if db.query(Division).filter(Division.code == code).first():
                continue
            db.add(Division(
                name=name,
                code=code,
                description=desc,
                organizational_unit_id=ou.id,
                is_active=True,
            ))
            added += 1
    db.commit()
    return added


def seed_admin(db) -> bool:
    """Create the first admin.  Returns False when skipped."""
    if not settings.first_admin_email or not settings.first_admin_password:
        logger.warning("[seed] FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – no admin created.")
        return False

    email = settings.first_admin_email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        logger.info("[seed] Admin '%s' already exists – skipping.", email)
        return False

    db.add(User(
        username=settings.first_admin_username,
        email=email,
        password_hash=hash_password(settings.first_admin_password),
        role="admin",
        is_active=True,
        login_attempts=0,
    ))
    db.commit()
    logger.info("[seed] Admin '%s' created successfully.", email)
    return True


def seed():
    db = SessionLocal()
    try:
        added = seed_structure(db)
        logger.info("[seed] Organizational structure: %d rows added.", added)
        seed_admin(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
