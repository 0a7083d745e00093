"""External collaborators: separation, transcription, recall and polish."""
