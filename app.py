import os

from restaurant_ordering import create_app, db
from config import config

app = create_app(config[os.getenv('FLASK_ENV', 'default')])

with app.app_context():
    db.create_all()


if __name__ == '__main__':
    app.run(host="0.0.0.0", port=int(os.getenv('PORT', 5000)), debug=app.config.get('DEBUG', False))
