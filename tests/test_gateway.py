import unittest

from s3fm.gateway import ThreadedGateway
from s3fm.models import ChildListing, ObjectEntry


class RecordingService:
    def __init__(self):
        self.calls = []

    def list_immediate_children(self, bucket, prefix):
        self.calls.append(("list", bucket, prefix))
        return ChildListing(objects=(ObjectEntry("a.txt"),))

    def list_buckets(self):
        self.calls.append(("buckets",))
        return ["docs"]

    def put_object(self, bucket, key, data, metadata):
        self.calls.append(("put", bucket, key, data, metadata))
        return "etag"

    def update_metadata(self, bucket, key, metadata):
        self.calls.append(("metadata", bucket, key, metadata))

    def delete_object(self, bucket, key):
        raise KeyError(key)


class ThreadedGatewayTests(unittest.IsolatedAsyncioTestCase):
    async def test_calls_are_forwarded_to_service(self):
        service = RecordingService()
        gateway = ThreadedGateway(service)

        listing = await gateway.list_immediate_children("docs", "a/")
        buckets = await gateway.list_buckets()
        etag = await gateway.put_object("docs", "a/b.txt", b"x", {"k": "v"})
        await gateway.update_metadata("docs", "a/b.txt", {"k": "w"})

        self.assertEqual(["a.txt"], [obj.name for obj in listing.objects])
        self.assertEqual(["docs"], buckets)
        self.assertEqual("etag", etag)
        self.assertEqual(
            [
                ("list", "docs", "a/"),
                ("buckets",),
                ("put", "docs", "a/b.txt", b"x", {"k": "v"}),
                ("metadata", "docs", "a/b.txt", {"k": "w"}),
            ],
            service.calls,
        )
        self.assertIs(service, gateway.service)

    async def test_service_errors_propagate(self):
        gateway = ThreadedGateway(RecordingService())

        with self.assertRaises(KeyError):
            await gateway.delete_object("docs", "a.txt")


if __name__ == "__main__":
    unittest.main()
