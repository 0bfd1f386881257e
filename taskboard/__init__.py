"""Board state engine: columns, tasks, drag-and-drop and persistence sync."""
