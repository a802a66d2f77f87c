"""Loading project records produced by the import collaborator."""

from salcalc.ingestion.project_file import ProjectFile, load_project, open_project_file

__all__ = ["ProjectFile", "load_project", "open_project_file"]
