# Seed data - demo intake submissions for a fresh store
import logging

from store import IntakeStore

logger = logging.getLogger(__name__)


def seed_data(store: IntakeStore) -> None:
    """Reset the store to two people and their demo submissions"""
    store.clear()

    ali = store.register_person("علی", "احمدی")
    maryam = store.register_person("مریم", "رضایی")

    store.add_payment(ali["id"], "نقدی", 9, "پرداخت نقدی")
    store.add_payment(ali["id"], "کارت بانکی", 8, "پرداخت با کارت")
    store.add_payment(maryam["id"], "بیمه", 7, "پرداخت با بیمه")
    store.add_payment(maryam["id"], "چک - اقساط", 6, "پرداخت با چک")

    store.add_treatment(ali["id"], "ایمپلنت", "very-high", 5000000, "ایمپلنت دندان")
    store.add_treatment(ali["id"], "جرمگیری", "medium", 500000, "جرمگیری دندان")
    store.add_treatment(maryam["id"], "لمینت", "high", 3000000, "لمینت دندان")

    store.add_doctor(ali["id"], "دکتر سعیدی متخصص ارتودنسی")
    store.add_doctor(maryam["id"], "دکتر کریمی", "اطفال")

    logger.info("Seed data initialized: %s", store.counts())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    from config import get_settings
    target = IntakeStore(get_settings().dataFile)
    seed_data(target)
