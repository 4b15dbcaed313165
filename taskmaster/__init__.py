"""TaskMaster collaboration service."""
