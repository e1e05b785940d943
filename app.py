import os

from src.edu_center.edu_center.main import create_app

app = create_app()


if __name__ == "__main__":
    app.run(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config["DEBUG"],
    )
