from enum import Enum


class EngineType(str, Enum):
    SMTP = "smtp"
    AWS_SES = "aws_ses"
    MOCK = "mock"
