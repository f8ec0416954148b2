"""kanbanctl: consistency core for a multi-board kanban tracker."""

__version__ = "0.4.0"
