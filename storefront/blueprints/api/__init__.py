from flask import Blueprint, jsonify

from storefront.errors import StorefrontError

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(StorefrontError)
def handle_storefront_error(error):
    return jsonify(error.to_dict()), error.status_code


from storefront.blueprints.api import views  # noqa: F401, E402
