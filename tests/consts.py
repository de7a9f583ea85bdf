TEST_BUCKET_NAME = "test-bucket"
TEST_REGION = "us-east-1"
TEST_SPACES_DOMAIN = "sgp1.digitaloceanspaces.com"

TEST_IMAGE_CONTENT = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
TEST_IMAGE_CONTENT_TYPE = "image/png"
