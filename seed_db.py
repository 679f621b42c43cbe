import logging

from categories import CATEGORIES
from database import ExpenseCategory, init_db, session_scope

logger = logging.getLogger(__name__)


def seed_categories(db) -> int:
    """Insert any missing reference categories. Returns how many were added."""
    existing = {name for (name,) in db.query(ExpenseCategory.name).all()}

    added = 0
    for name, name_hindi in CATEGORIES:
        if name in existing:
            continue
        db.add(ExpenseCategory(name=name, name_hindi=name_hindi))
        added += 1

    db.commit()
    return added


def main():
    init_db()
    with session_scope() as db:
        added = seed_categories(db)

    if added:
        logger.info("Seeded %d expense categories", added)
    else:
        logger.info("Categories already exist. Skipping seed.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
