import os

from garcon.bootstrap.components import Components


def get_components(env: str | None = None) -> Components:
    return Components(env or os.getenv("APP_ENV", "development"))
