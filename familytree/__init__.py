"""FamilyTree - a drag-to-grow family tree editor."""

__version__ = "1.0.0"
__app_id__ = "io.github.familytree.FamilyTree"
