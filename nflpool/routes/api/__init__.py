from flask import Blueprint

bp = Blueprint("api", __name__)

from nflpool.routes.api import routes  # noqa: E402, F401
