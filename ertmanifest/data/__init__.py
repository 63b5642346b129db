from ertmanifest.data.loader import DataLoader, TableSource, compute_file_hash

__all__ = ["DataLoader", "TableSource", "compute_file_hash"]
