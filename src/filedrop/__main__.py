from filedrop import __app_name__
from filedrop.cli import app


def main() -> None:
    app(prog_name=__app_name__)


if __name__ == "__main__":
    main()
