# ethcrawler/exceptions.py

class CrawlerError(Exception):
    """Base exception class for crawler errors"""
    pass

class TransportError(CrawlerError):
    """Raised when a ledger node call fails (HTTP, JSON-RPC or malformed response)"""
    pass

class ParseError(CrawlerError):
    """Raised when a persisted key, address or hash cannot be parsed"""
    pass

class StoreError(CrawlerError):
    """Raised when the local transaction store fails"""
    pass
