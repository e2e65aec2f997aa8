"""TaskFlow: task management API."""
