"""HTTP routes served by the corsgate host application."""
