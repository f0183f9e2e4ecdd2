"""Exercise tracker: schemas, log filtering and user/exercise operations."""
