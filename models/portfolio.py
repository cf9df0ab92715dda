import logging

from flask import Blueprint, current_app, jsonify

from app_config import portfolio_collection_path
from .document import DocumentStoreError

logger = logging.getLogger(__name__)

portfolio_bp = Blueprint('portfolio', __name__)


class PortfolioHandler:
    """Read-only listing of the portfolio collection."""

    def __init__(self, store, app_id):
        self.store = store
        self.collection_path = portfolio_collection_path(app_id)

    def list_portfolio(self):
        items = self.store.list_collection(self.collection_path)
        if not items:
            logger.info('No portfolio items found.')
        return items


@portfolio_bp.route('/portfolio', methods=['GET'])
def list_portfolio():
    handler = current_app.config.get('PORTFOLIO_HANDLER')
    if handler is None:
        current_app.logger.error("Portfolio requested but the document store is not initialized")
        return jsonify({'message': 'Document store is not initialized.'}), 500

    try:
        items = handler.list_portfolio()
    except DocumentStoreError as e:
        current_app.logger.error(f"Error fetching portfolio items: {e}")
        return jsonify({'message': 'Failed to fetch portfolio items.', 'error': str(e)}), 500

    return jsonify(items), 200
