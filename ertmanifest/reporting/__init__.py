from ertmanifest.reporting.manifest import MANIFEST_VERSION, ManifestAssembler

__all__ = ["MANIFEST_VERSION", "ManifestAssembler"]
