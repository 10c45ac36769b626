from pharmacy_pos.core.config import settings


def get_store_id() -> str:
    # single-store deployment; authentication supplies the store upstream
    return settings.STORE_ID
