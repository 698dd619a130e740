import unittest

from botocore.stub import ANY, Stubber

from portfolio.errors import TransportFailure
from portfolio.storage import S3StorageClient


class S3StorageClientTests(unittest.TestCase):
    def setUp(self):
        self.storage = S3StorageClient(
            bucket="portfolio-files",
            region="us-east-1",
            endpoint="https://s3.example.test",
            access_key_id="key",
            secret_access_key="secret",
        )
        self.stubber = Stubber(self.storage._client)
        self.stubber.activate()
        self.addCleanup(self.stubber.deactivate)

    def _put_params(self, key, **extra):
        params = {
            "Bucket": "portfolio-files",
            "Key": key,
            "Body": ANY,
            "ContentType": "application/pdf",
        }
        params.update(extra)
        return params

    def test_new_key_is_a_single_conditional_put(self):
        self.stubber.add_response(
            "put_object", {}, self._put_params("public/1_abc.pdf", IfNoneMatch="*")
        )
        self.storage.upload("public/1_abc.pdf", b"data")
        self.stubber.assert_no_pending_responses()

    def test_existing_key_is_refused_without_overwrite(self):
        self.stubber.add_client_error(
            "put_object",
            service_error_code="PreconditionFailed",
            service_message="At least one of the pre-conditions you specified did not hold",
            http_status_code=412,
            expected_params=self._put_params("public/1_abc.pdf", IfNoneMatch="*"),
        )
        with self.assertRaises(TransportFailure) as ctx:
            self.storage.upload("public/1_abc.pdf", b"data")
        self.assertIn("already exists", ctx.exception.message)

    def test_overwrite_puts_unconditionally(self):
        self.stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": "portfolio-files",
                "Key": "profile/me.png",
                "Body": ANY,
                "ContentType": "image/png",
            },
        )
        self.storage.upload("profile/me.png", b"png", overwrite=True)
        self.stubber.assert_no_pending_responses()

    def test_client_errors_become_transport_failures(self):
        self.stubber.add_client_error(
            "put_object", service_error_code="AccessDenied", http_status_code=403
        )
        with self.assertRaises(TransportFailure):
            self.storage.upload("public/1_abc.pdf", b"data")

        self.stubber.add_client_error(
            "get_object", service_error_code="NoSuchKey", http_status_code=404
        )
        with self.assertRaises(TransportFailure):
            self.storage.get_bytes("public/missing.pdf")

    def test_public_url_defaults_to_endpoint_and_bucket(self):
        self.assertEqual(
            self.storage.get_public_url("public/1_abc.pdf"),
            "https://s3.example.test/portfolio-files/public/1_abc.pdf",
        )
        cdn = S3StorageClient(
            bucket="portfolio-files",
            region="us-east-1",
            endpoint="https://s3.example.test",
            access_key_id="key",
            secret_access_key="secret",
            public_base_url="https://cdn.example.test/",
        )
        self.assertEqual(
            cdn.get_public_url("public/1_abc.pdf"),
            "https://cdn.example.test/public/1_abc.pdf",
        )


if __name__ == "__main__":
    unittest.main()
