import io
import unittest
import zipfile
from datetime import datetime, timezone

from botocore.exceptions import ClientError, EndpointConnectionError

from s3fm.errors import ConflictError, InvalidInputError, InvalidMetadataError, NotFoundError, UnreachableError
from s3fm.profiles import ConnectionProfile
from s3fm.services import S3StorageService, validate_metadata


def client_error(code, operation="Operation"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeBody(io.BytesIO):
    pass


class FakeS3Client:
    def __init__(self, buckets=None, object_responses=None, head_object_responses=None, objects=None):
        self.buckets = list(buckets or [])
        self.object_responses = {name: iter(responses) for name, responses in (object_responses or {}).items()}
        self.head_object_responses = head_object_responses or {}
        self.objects = objects or {}
        self.list_objects_kwargs = []
        self.head_object_calls = []
        self.put_object_calls = []
        self.delete_object_calls = []
        self.copy_object_calls = []
        self.create_bucket_calls = []
        self.delete_bucket_calls = []

    def list_buckets(self):
        return {"Buckets": [{"Name": name} for name in self.buckets]}

    def create_bucket(self, **kwargs):
        self.create_bucket_calls.append(kwargs)

    def delete_bucket(self, **kwargs):
        self.delete_bucket_calls.append(kwargs)

    def list_objects_v2(self, **kwargs):
        self.list_objects_kwargs.append(kwargs)
        response = next(self.object_responses[kwargs["Bucket"]])
        if isinstance(response, Exception):
            raise response
        return response

    def head_object(self, **kwargs):
        self.head_object_calls.append(kwargs)
        response = self.head_object_responses.get((kwargs["Bucket"], kwargs["Key"]), {})
        if isinstance(response, Exception):
            raise response
        return response

    def put_object(self, **kwargs):
        self.put_object_calls.append(kwargs)
        return {"ETag": '"etag-1"'}

    def delete_object(self, **kwargs):
        self.delete_object_calls.append(kwargs)

    def get_object(self, **kwargs):
        data = self.objects.get((kwargs["Bucket"], kwargs["Key"]))
        if data is None:
            raise client_error("NoSuchKey", "GetObject")
        return {"Body": FakeBody(data)}

    def copy_object(self, **kwargs):
        self.copy_object_calls.append(kwargs)


def make_service(client, **kwargs):
    profile = ConnectionProfile(name="local", access_key="a", secret_key="s")
    return S3StorageService(profile, client_factory=lambda *args, **kw: client, **kwargs)


class ListImmediateChildrenTests(unittest.TestCase):
    def test_lists_folders_and_objects_relative_to_prefix(self):
        modified = datetime(2024, 1, 1, tzinfo=timezone.utc)
        client = FakeS3Client(
            object_responses={
                "docs": [
                    {
                        "CommonPrefixes": [{"Prefix": "reports/2024/"}],
                        "Contents": [
                            {"Key": "reports/", "Size": 0},
                            {"Key": "reports/a.txt", "Size": 3, "ETag": '"abc"', "LastModified": modified},
                        ],
                        "IsTruncated": False,
                    }
                ]
            },
            head_object_responses={("docs", "reports/a.txt"): {"Metadata": {"owner": "ana"}}},
        )
        service = make_service(client)

        children = service.list_immediate_children("docs", "reports/")

        self.assertEqual(("2024",), children.folders)
        self.assertEqual(["", "a.txt"], [obj.name for obj in children.objects])
        entry = children.objects[1]
        self.assertEqual((3, "abc", modified), (entry.size, entry.etag, entry.last_modified))
        self.assertEqual({"owner": "ana"}, entry.metadata)
        self.assertEqual("/", client.list_objects_kwargs[0]["Delimiter"])
        self.assertEqual("reports/", client.list_objects_kwargs[0]["Prefix"])
        self.assertEqual([{"Bucket": "docs", "Key": "reports/a.txt"}], client.head_object_calls)

    def test_follows_continuation_tokens(self):
        client = FakeS3Client(
            object_responses={
                "docs": [
                    {"Contents": [{"Key": "a.txt"}], "IsTruncated": True, "NextContinuationToken": "t1"},
                    {"Contents": [{"Key": "b.txt"}], "IsTruncated": False},
                ]
            }
        )
        service = make_service(client, fetch_metadata=False)

        children = service.list_immediate_children("docs")

        self.assertEqual(["a.txt", "b.txt"], [obj.name for obj in children.objects])
        self.assertNotIn("Prefix", client.list_objects_kwargs[0])
        self.assertEqual("t1", client.list_objects_kwargs[1]["ContinuationToken"])
        self.assertEqual([], client.head_object_calls)

    def test_missing_bucket_maps_to_not_found(self):
        client = FakeS3Client(object_responses={"docs": [client_error("NoSuchBucket", "ListObjectsV2")]})

        with self.assertRaises(NotFoundError):
            make_service(client).list_immediate_children("docs")

    def test_connection_failure_maps_to_unreachable(self):
        error = EndpointConnectionError(endpoint_url="http://localhost:4566")
        client = FakeS3Client(object_responses={"docs": [error]})

        with self.assertRaises(UnreachableError):
            make_service(client).list_immediate_children("docs")


class BucketTests(unittest.TestCase):
    def test_create_bucket_rejects_existing_name(self):
        client = FakeS3Client(buckets=["docs"])

        with self.assertRaises(ConflictError):
            make_service(client).create_bucket("docs")
        self.assertEqual([], client.create_bucket_calls)

    def test_create_bucket_outside_default_region_sets_constraint(self):
        client = FakeS3Client()
        profile = ConnectionProfile(name="eu", region="eu-west-1")
        service = S3StorageService(profile, client_factory=lambda *args, **kw: client)

        service.create_bucket("logs")

        self.assertEqual(
            [{"Bucket": "logs", "CreateBucketConfiguration": {"LocationConstraint": "eu-west-1"}}],
            client.create_bucket_calls,
        )

    def test_delete_non_empty_bucket_conflicts(self):
        client = FakeS3Client(object_responses={"docs": [{"KeyCount": 1, "Contents": [{"Key": "a"}]}]})

        with self.assertRaises(ConflictError) as ctx:
            make_service(client).delete_bucket("docs")
        self.assertIn("Bucket is not empty", str(ctx.exception))
        self.assertEqual([], client.delete_bucket_calls)

    def test_delete_empty_bucket(self):
        client = FakeS3Client(object_responses={"docs": [{"KeyCount": 0}]})

        make_service(client).delete_bucket("docs")

        self.assertEqual([{"Bucket": "docs"}], client.delete_bucket_calls)


class ObjectTests(unittest.TestCase):
    def test_create_folder_marker_writes_keep_object(self):
        client = FakeS3Client()

        key = make_service(client).create_folder_marker("docs", "reports/new/")

        self.assertEqual("reports/new/.keep", key)
        self.assertEqual(b"", client.put_object_calls[0]["Body"])

    def test_create_folder_marker_rejects_root(self):
        with self.assertRaises(InvalidInputError):
            make_service(FakeS3Client()).create_folder_marker("docs", "")

    def test_put_object_sends_metadata(self):
        client = FakeS3Client()

        etag = make_service(client).put_object("docs", "a.txt", b"hi", {" owner ": "ana"}, "text/plain")

        self.assertEqual("etag-1", etag)
        call = client.put_object_calls[0]
        self.assertEqual({"owner": "ana"}, call["Metadata"])
        self.assertEqual("text/plain", call["ContentType"])

    def test_get_objects_as_archive_uses_unique_base_names(self):
        client = FakeS3Client(objects={("docs", "a/x.txt"): b"one", ("docs", "b/x.txt"): b"two"})

        data = make_service(client).get_objects_as_archive("docs", ["a/x.txt", "b/x.txt"])

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            self.assertEqual(["x.txt", "x-1.txt"], archive.namelist())
            self.assertEqual(b"two", archive.read("x-1.txt"))

    def test_get_missing_object(self):
        with self.assertRaises(NotFoundError):
            make_service(FakeS3Client()).get_object("docs", "missing")

    def test_update_metadata_replaces_via_copy(self):
        client = FakeS3Client(head_object_responses={("docs", "a.txt"): {"ContentType": "text/plain"}})

        make_service(client).update_metadata("docs", "a.txt", {"owner": "bo"})

        call = client.copy_object_calls[0]
        self.assertEqual("REPLACE", call["MetadataDirective"])
        self.assertEqual({"owner": "bo"}, call["Metadata"])
        self.assertEqual("text/plain", call["ContentType"])

    def test_get_object_details(self):
        client = FakeS3Client(
            head_object_responses={
                ("docs", "a.txt"): {"ContentLength": 4, "ETag": '"e"', "Metadata": {"k": "v"}}
            }
        )

        details = make_service(client).get_object_details("docs", "a.txt")

        self.assertEqual((4, {"k": "v"}), (details.size, details.metadata))


class ValidateMetadataTests(unittest.TestCase):
    def test_rejects_empty_values_and_case_clashes(self):
        with self.assertRaises(InvalidMetadataError):
            validate_metadata({"": "x"})
        with self.assertRaises(InvalidMetadataError):
            validate_metadata({"owner": " "})
        with self.assertRaises(InvalidMetadataError):
            validate_metadata({"Owner": "a", "owner": "b"})

    def test_none_is_empty(self):
        self.assertEqual({}, validate_metadata(None))


if __name__ == "__main__":
    unittest.main()
