from flask import Blueprint, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the cardroom blackjack server!'})


@main.route('/api/health')
def health_check():
    return jsonify({'status': 'healthy'})
