from loaders.csv_rows import load_csv
from loaders.database import load_database, load_from_connection

__all__ = ["load_csv", "load_database", "load_from_connection"]
