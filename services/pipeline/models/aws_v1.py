# services/pipeline/models/aws_v1.py

"""
Pydantic models for AWS API Gateway v1 (REST API) proxy integration.

Reference: https://docs.aws.amazon.com/apigateway/latest/developerguide/set-up-lambda-proxy-integrations.html

The event model is lenient: only the fields the pipeline reads are declared,
everything else in the event is ignored.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class APIGatewayProxyEvent(BaseModel):
    """
    AWS API Gateway Proxy Integration (v1) Event Structure (input side).
    """

    resource: Optional[str] = None
    path: str = ""
    httpMethod: str
    headers: Optional[Dict[str, str]] = None
    multiValueHeaders: Optional[Dict[str, List[str]]] = None
    queryStringParameters: Optional[Dict[str, str]] = None
    pathParameters: Optional[Dict[str, str]] = None
    body: Optional[str] = None
    isBase64Encoded: bool = False

    model_config = ConfigDict(extra="ignore")


class APIGatewayProxyResult(BaseModel):
    """
    AWS API Gateway Proxy Integration (v1) Result Structure (output side).
    """

    statusCode: int = 200
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    isBase64Encoded: bool = False
