import logging
import os

from amsa_pos import create_app

app = create_app()

if __name__ == "__main__":
    with app.app_context():
        from amsa_pos.routes import get_api_url, is_demo_mode

        if is_demo_mode():
            logging.info("Mode Demo aktif: data contoh di memori, tidak ada yang tersimpan")
        else:
            logging.info("Endpoint spreadsheet: %s", get_api_url())

    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG") == "1")
