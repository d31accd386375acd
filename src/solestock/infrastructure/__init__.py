"""AWS kaynaklarını (DynamoDB tabloları, S3 bucket) kuran yardımcı scriptler."""
