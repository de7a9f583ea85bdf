"""Articles API: articles in SQLite, their images in a Spaces/S3 bucket."""
