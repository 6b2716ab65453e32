import os

from flask import Blueprint, current_app, jsonify, send_from_directory

main = Blueprint('main', __name__)


@main.route('/', defaults={'path': ''})
@main.route('/<path:path>')
def index(path):
    # Serve the prebuilt client when configured, falling back to its index.html
    build_dir = current_app.config.get('CLIENT_BUILD_DIR')
    if not build_dir:
        if path:
            return jsonify({'error': 'Not found'}), 404
        return jsonify({'message': 'Welcome to the Courtside scoreboard server!'})

    build_dir = os.path.abspath(build_dir)
    if path and os.path.isfile(os.path.join(build_dir, path)):
        return send_from_directory(build_dir, path)
    return send_from_directory(build_dir, 'index.html')
