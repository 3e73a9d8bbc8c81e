"""Module entry point for running the InsightFlow UI Flask application.

This module imports the Flask application instance from `insightflow_ui`
and runs it when executed as a script.

Example:
    To start the application with the bundled example surveys, run:

        SURVEY_STORE=memory poetry run python main.py

"""

from insightflow_ui import app

if __name__ == "__main__":
    # Run the Flask app directly when the script is executed
    app.run(host="0.0.0.0", port=8000)  # noqa: S104
