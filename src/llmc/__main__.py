from llmc.cli import app


def main() -> None:
    app(prog_name="llmc")


if __name__ == "__main__":
    main()
