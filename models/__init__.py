# Import models and components for easy access
from .database import db
from .document import Document, DocumentStore, DocumentStoreError, StoreUnavailable, StoreWriteRejected
from .contact import ContactSubmission, ContactSubmissionHandler, SubmissionOutcome, contact_bp
from .portfolio import PortfolioHandler, portfolio_bp

# Export all models and components
__all__ = [
    'db',
    'Document', 'DocumentStore', 'DocumentStoreError', 'StoreUnavailable', 'StoreWriteRejected',
    'ContactSubmission', 'ContactSubmissionHandler', 'SubmissionOutcome', 'contact_bp',
    'PortfolioHandler', 'portfolio_bp',
]
