from ertmanifest.workflow.pipeline import ScanPipeline, ScanResult

__all__ = ["ScanPipeline", "ScanResult"]
