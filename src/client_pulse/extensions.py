from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Shared Flask extension objects, bound to an app in create_app().
# Objects stay readable after commit; every store operation commits before releasing the store lock.
db = SQLAlchemy(session_options={"expire_on_commit": False})
migrate = Migrate()
cors = CORS()

SERVICES_KEY = 'client_pulse'
