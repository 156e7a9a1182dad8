from adapters.aws.dynamodb_error_log_store import DynamoDBErrorLogStore
from adapters.aws.ses_mailer import SesMailer

__all__ = [
    "DynamoDBErrorLogStore",
    "SesMailer",
]
