# Overview: WSGI entry point for the Justoo gateway (also the FLASK_APP target for CLI commands).

from justoo import create_app

app = create_app()

if __name__ == "__main__":
    app.run(port=3000)
