"""Create the portal database and apply migrations."""
from yatri.config import get_settings
from yatri.database import run_migrations


def main() -> None:
    settings = get_settings()
    run_migrations()
    print("Database initialised at", settings.database_url)


if __name__ == "__main__":
    main()
