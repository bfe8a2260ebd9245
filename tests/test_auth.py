import unittest

import requests
from freezegun import freeze_time

from logsig import (
    Credentials,
    Headers,
    InvalidCredentialError,
    InvalidRequestError,
    RefreshableCredentialsProvider,
    sign_v1,
)
from logsig.auth import LogAuth, parse_query

FIXED_TIME = '2021-01-01 00:00:00'
ENDPOINT = 'http://test-project.cn-hangzhou.log.aliyuncs.com'


class TestLogAuth(unittest.TestCase):

    @freeze_time(FIXED_TIME)
    def test_signs_prepared_request(self) -> None:
        request = requests.Request(
            'POST',
            f"{ENDPOINT}/logstores/test-logstore/logs?key2=value2&key1=value1",
            headers={'Content-Type': 'application/x-protobuf', 'x-log-bodyrawsize': '17'},
            data=b'hello log service',
            auth=LogAuth(Credentials('AK', 'SK')),
        ).prepare()

        self.assertEqual(request.headers['x-log-apiversion'], '0.6.0')
        self.assertEqual(request.headers['x-log-signaturemethod'], 'hmac-sha1')
        self.assertEqual(request.headers['Content-MD5'], '11EE746EB07D9E16E6A837CC13B4FBE2')
        self.assertEqual(request.headers['Authorization'], 'LOG AK:uIt9lwsj4ozTXzbX6WYxTGUSvps=')

    @freeze_time(FIXED_TIME)
    def test_without_standard_headers(self) -> None:
        request = requests.Request(
            'GET', f"{ENDPOINT}/", auth=LogAuth(Credentials('AK', 'SK'), api_version=None)
        ).prepare()

        self.assertNotIn('x-log-apiversion', request.headers)
        self.assertEqual(request.headers['Date'], 'Fri, 01 Jan 2021 00:00:00 GMT')
        self.assertEqual(request.headers['Authorization'], 'LOG AK:mSh3+27WBQi19BgbfkvMTGKVOf8=')

    @freeze_time(FIXED_TIME)
    def test_uses_provider_snapshot_per_request(self) -> None:
        tokens = iter(['STS.token', 'STS.rotated'])
        provider = RefreshableCredentialsProvider(lambda: Credentials('AK', 'SK', next(tokens)))
        auth = LogAuth(provider, api_version=None)

        first = requests.Request('GET', f"{ENDPOINT}/", auth=auth).prepare()
        provider.refresh()
        second = requests.Request('GET', f"{ENDPOINT}/", auth=auth).prepare()

        self.assertEqual(first.headers['x-acs-security-token'], 'STS.token')
        self.assertEqual(first.headers['Authorization'], 'LOG AK:8rHQV6Anu2r3e2jviw/G6bbCtOs=')
        self.assertEqual(second.headers['x-acs-security-token'], 'STS.rotated')
        self.assertNotEqual(first.headers['Authorization'], second.headers['Authorization'])

    @freeze_time(FIXED_TIME)
    def test_value_less_query_parameter_signed_bare(self) -> None:
        request = requests.Request(
            'GET', f"{ENDPOINT}/logstores/test?reverse&type=log",
            auth=LogAuth(Credentials('AK', 'SK'), api_version=None)
        ).prepare()

        headers = Headers()
        expected = sign_v1('AK', 'SK', None, 'GET', '/logstores/test', headers, [('reverse', None), ('type', 'log')])
        self.assertEqual(expected, 'LOG AK:uEU8PgxsW8RgobjbNcTa347xhmE=')
        self.assertEqual(request.headers['Authorization'], expected)

    def test_parse_query_decodes_values(self) -> None:
        params = parse_query('query=status%3A%20200&topic=a+b&reverse&empty=')

        self.assertEqual(
            list(params),
            [('query', 'status: 200'), ('topic', 'a b'), ('reverse', None), ('empty', '')]
        )

    def test_failed_signing_leaves_request_untouched(self) -> None:
        request = requests.Request(
            'POST', f"{ENDPOINT}/logstores/test-logstore/logs",
            headers={'Content-Type': 'application/x-protobuf'},
            data=b'hello log service',
        ).prepare()
        before = dict(request.headers)

        with self.assertRaises(InvalidCredentialError):
            LogAuth(Credentials('', 'SK'))(request)

        self.assertEqual(dict(request.headers), before)

    def test_duplicate_query_parameter_rejected(self) -> None:
        request = requests.Request('GET', f"{ENDPOINT}/logstores?size=1&size=2")

        with self.assertRaises(InvalidRequestError):
            request.auth = LogAuth(Credentials('AK', 'SK'))
            request.prepare()


if __name__ == '__main__':
    unittest.main(verbosity=2)
