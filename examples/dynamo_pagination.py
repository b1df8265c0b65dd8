"""
DynamoDB Pagination Examples

Demonstrates cursor pagination over the messages of one chat room, stored in
a table with partition key 'room_id' and sort key 'timestamp'.

Run against LocalStack:
    docker run -p 4566:4566 localstack/localstack
    LOCALSTACK_ENDPOINT=http://localhost:4566 python examples/dynamo_pagination.py
"""

import logging
import os

import boto3
from pydantic import BaseModel

from keypage import Attr, DynamoRowSource, KeypageError, iter_pages, paginate


class Message(BaseModel):
    room_id: str
    timestamp: str
    author: str
    content: str
    likes: int = 0


def make_client():
    return boto3.client(
        "dynamodb",
        endpoint_url=os.getenv("LOCALSTACK_ENDPOINT", "http://localhost:4566"),
        region_name="us-east-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )


def seed(client, table_name: str) -> None:
    existing = client.list_tables()["TableNames"]
    if table_name not in existing:
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "room_id", "KeyType": "HASH"},
                {"AttributeName": "timestamp", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "room_id", "AttributeType": "S"},
                {"AttributeName": "timestamp", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        client.get_waiter("table_exists").wait(TableName=table_name)

    for minute in range(30):
        client.put_item(
            TableName=table_name,
            Item={
                "room_id": {"S": "general"},
                "timestamp": {"S": f"2024-05-01T10:{minute:02d}:00Z"},
                "author": {"S": ["ada", "grace", "linus"][minute % 3]},
                "content": {"S": f"message #{minute}"},
                "likes": {"N": str(minute % 4)},
            },
        )


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    client = make_client()
    seed(client, "ChatMessages")

    # Newest messages first, returned as pydantic models
    latest = DynamoRowSource(
        "ChatMessages",
        pk_name="room_id",
        pk_value="general",
        sk_name="timestamp",
        direction="desc",
        client=client,
        row_factory=Message.model_validate,
    )

    # 1. First page, then the next one, then back again
    first = paginate(latest, 5)
    print("Newest:", [m.content for m in first.items])

    older = paginate(latest, 5, first.next_cursor)
    print("Older:", [m.content for m in older.items])

    back = paginate(latest, 5, older.prev_cursor)
    assert back.items == first.items

    # 2. Walk everything written by one author, 4 at a time
    by_ada = latest.filter(Attr("author") == "ada")
    for number, page in enumerate(iter_pages(by_ada, 4), start=1):
        print(f"Ada page {number}:", [m.timestamp for m in page.items])

    # 3. Bad cursors are reported as errors, never as empty pages
    try:
        paginate(latest, 5, "not-a-cursor")
    except KeypageError as e:
        print("Rejected:", e)


if __name__ == "__main__":
    main()
