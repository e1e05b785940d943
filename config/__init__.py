import os

ENVIRONMENTS = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    # APP_ENV picks the settings module; anything unknown means development.
    env = os.getenv("APP_ENV", "development").strip().lower()
    return ENVIRONMENTS.get(env, "config.development")
