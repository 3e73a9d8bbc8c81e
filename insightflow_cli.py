"""Simple CLI util for managing InsightFlow surveys.

This module imports and executes the main function from scripts.manage_surveys
when run as a script.
"""

from scripts.manage_surveys import main


def run_main() -> None:
    """Runs the main function from scripts.manage_surveys.

    This function serves as the entry point when the script is executed directly.
    In project root directory, run:

    poetry run python -m insightflow_cli --action list
    """
    raise SystemExit(main())


if __name__ == "__main__":
    run_main()
