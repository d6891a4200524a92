from flask import Blueprint, jsonify

from storefront.errors import StorefrontError

admin_bp = Blueprint("admin", __name__)


@admin_bp.errorhandler(StorefrontError)
def handle_storefront_error(error):
    return jsonify(error.to_dict()), error.status_code


from storefront.blueprints.admin import views  # noqa: F401, E402
