#! /usr/bin/env python

import copy
import datetime
import json
import logging
import unittest

from jsonlight import dates
from jsonlight import edm
from jsonlight import errors
from jsonlight import params
from jsonlight import payload

from test_jsonlight_edm import load_demo


def suite():
    loader = unittest.TestLoader()
    return unittest.TestSuite((
        loader.loadTestsFromTestCase(OptionTests),
        loader.loadTestsFromTestCase(ReadTests),
        loader.loadTestsFromTestCase(WriteTests),
        loader.loadTestsFromTestCase(HandlerTests),
        ))


SERVICE = "http://host/service/"

ENTRY = {
    "@odata.context": SERVICE + "$metadata#Products/$entity",
    "ID": 1,
    "Name": "Bread",
    "ReleaseDate": "2013-01-01T10:30:00Z"}


class OptionTests(unittest.TestCase):

    def test_metadata_amount(self):
        self.assertTrue(payload.MetadataAmount.DEFAULT ==
                        payload.MetadataAmount.minimal)
        self.assertTrue(payload.MetadataAmount.from_str_lower("FULL") ==
                        payload.MetadataAmount.full)
        self.assertTrue(payload.MetadataAmount.to_str(
            payload.MetadataAmount.none) == "none")

    def test_max_version(self):
        self.assertTrue(payload.max_version("4.0", "4.01") == "4.01")
        self.assertTrue(payload.max_version("4.0", "3.0") == "4.0")
        self.assertTrue(payload.max_version("10.0", "9.0") == "10.0")
        self.assertTrue(payload.max_version("4.0", "4.0") == "4.0")

    def test_constructor(self):
        p = payload.Payload()
        self.assertTrue(p.model is None)
        self.assertTrue(p.metadata == payload.MetadataAmount.minimal)
        self.assertFalse(p.recognize_dates)
        self.assertFalse(p.strict)
        self.assertTrue(payload.Payload({}).model is None)
        p = payload.Payload([{"namespace": "Test"}])
        self.assertTrue(isinstance(p.model, edm.EntityModel))
        model = load_demo()
        self.assertTrue(payload.Payload(model).model is model)

    def test_media_type(self):
        p = payload.Payload()
        self.assertTrue(str(p.get_media_type()) ==
                        "application/json; odata.metadata=minimal")
        p.set_media_type("application/json;odata.metadata=full")
        self.assertTrue(p.metadata == payload.MetadataAmount.full)
        self.assertTrue(str(p.get_media_type()) ==
                        "application/json; odata.metadata=full")
        p.set_media_type("Application/JSON; ODATA.METADATA=NONE")
        self.assertTrue(p.metadata == payload.MetadataAmount.none)
        p.set_media_type(params.MediaType.from_str("application/json"))
        self.assertTrue(p.metadata == payload.MetadataAmount.minimal)
        p.set_media_type(
            "application/json;odata.metadata=minimal;charset=ISO-8859-1")
        self.assertTrue(p.charset == "iso-8859-1")
        self.assertTrue(
            str(p.get_media_type()) ==
            "application/json; charset=ISO-8859-1; odata.metadata=minimal")
        p.set_media_type("application/json;odata.metadata=verbose")
        self.assertTrue(p.metadata is None)
        self.assertTrue(p.charset == "utf-8")
        self.assertTrue(str(p.get_media_type()) == "application/json")

    def test_bad_media_type(self):
        p = payload.Payload()
        try:
            p.set_media_type("application/json;odata.metadata")
            self.fail("bad content type")
        except errors.FormatError:
            pass


class ReadTests(unittest.TestCase):

    def setUp(self):        # noqa
        self.model = load_demo()
        self.p = payload.Payload(self.model)

    def test_minimal_text(self):
        result = self.p.read(json.dumps(ENTRY))
        self.assertTrue(result["@odata.type"] == "#ODataDemo.Product")
        self.assertTrue(result["@odata.id"] == SERVICE + "Products(1)")
        self.assertTrue(result["ReleaseDate@odata.type"] ==
                        "#Edm.DateTimeOffset")
        # minimal metadata values are not converted
        self.assertTrue(result["ReleaseDate"] == "2013-01-01T10:30:00Z")
        result = self.p.read(json.dumps(ENTRY).encode('utf-8'))
        self.assertTrue(result["@odata.editLink"] == "Products(1)")

    def test_minimal_object(self):
        src = copy.deepcopy(ENTRY)
        result = self.p.read(src)
        self.assertFalse(result is src)
        self.assertTrue(src == ENTRY)
        self.assertTrue(result["@odata.editLink"] == "Products(1)")

    def test_minimal_feed(self):
        src = {
            "@odata.context": SERVICE + "$metadata#Persons",
            "value": [{"ID": 1, "Address": {"City": "Bristol"}}]}
        original = copy.deepcopy(src)
        result = self.p.read(src)
        self.assertTrue(src == original)
        item = result["value"][0]
        self.assertTrue(item["@odata.id"] == SERVICE + "Persons(1)")
        self.assertTrue(item["Address"]["@odata.type"] ==
                        "#ODataDemo.Address")

    def test_minimal_unchanged(self):
        src = {"ID": 1}
        self.assertTrue(self.p.read(src) == {"ID": 1})
        self.assertTrue(self.p.read("[1, 2]") == [1, 2])
        self.assertTrue(self.p.read("42") == 42)
        self.assertTrue(self.p.read("null") is None)
        # without a model there is nothing to annotate
        self.assertTrue(payload.Payload().read(json.dumps(ENTRY)) == ENTRY)

    def test_none(self):
        self.p.set_media_type("application/json;odata.metadata=none")
        src = copy.deepcopy(ENTRY)
        result = self.p.read(src)
        self.assertTrue(result is src)
        self.assertTrue(result == ENTRY)
        self.assertTrue(self.p.read(json.dumps(ENTRY)) == ENTRY)

    def test_unknown(self):
        self.p.set_media_type("application/json;odata.metadata=verbose")
        src = copy.deepcopy(ENTRY)
        self.assertTrue(self.p.read(src) is src)
        self.assertTrue(self.p.read(json.dumps(ENTRY)) == ENTRY)

    def test_full(self):
        self.p.set_media_type("application/json;odata.metadata=full")
        src = {
            "@odata.context": SERVICE + "$metadata#Products/$entity",
            "@odata.type": "#ODataDemo.Product",
            "ID": 1,
            "Price": 2.5,
            "ReleaseDate": "2013-01-01T10:30:00Z",
            "ReleaseDate@odata.type": "#DateTimeOffset"}
        original = copy.deepcopy(src)
        result = self.p.read(src)
        self.assertTrue(src == original)
        self.assertTrue(result["ID@odata.type"] == "#Integer")
        self.assertTrue(result["Price@odata.type"] == "#Decimal")
        self.assertTrue(result["ReleaseDate"] == "2013-01-01T10:30:00Z")
        self.p.recognize_dates = True
        result = self.p.read(src)
        self.assertTrue(isinstance(result["ReleaseDate"],
                                   dates.DateTimeValue))
        self.assertTrue(result["ReleaseDate"] == datetime.datetime(
            2013, 1, 1, 10, 30, tzinfo=dates.UTC))

    def test_decode_error(self):
        for src in ("{", "", b"\xff\xfe", "{'ID': 1}"):
            try:
                self.p.read(src)
                self.fail("Decoded bad JSON: %s" % repr(src))
            except ValueError:
                pass

    def test_strict(self):
        src = {"@odata.context": SERVICE + "$metadata#Unknown"}
        self.assertTrue(self.p.read(src) == src)
        self.p.strict = True
        try:
            self.p.read(src)
            self.fail("Strict read of unknown entity set")
        except errors.UnclassifiedFragment as err:
            self.assertTrue(err.segment == "Unknown")


class WriteTests(unittest.TestCase):

    def test_serializable(self):
        self.assertTrue(payload.is_serializable_property("Name"))
        self.assertTrue(payload.is_serializable_property("@odata.id"))
        self.assertTrue(payload.is_serializable_property("@odata.type"))
        self.assertTrue(payload.is_serializable_property("Name@odata.type"))
        self.assertTrue(payload.is_serializable_property("Name@Custom.Note"))
        self.assertFalse(payload.is_serializable_property(""))
        self.assertFalse(payload.is_serializable_property(None))
        self.assertFalse(payload.is_serializable_property("@odata.context"))
        self.assertFalse(payload.is_serializable_property("@odata.editLink"))
        self.assertFalse(payload.is_serializable_property("@odata.etag"))
        self.assertFalse(payload.is_serializable_property("@odata.typeName"))
        self.assertFalse(
            payload.is_serializable_property("Name@odata.navigationLink"))

    def test_format(self):
        data = {
            "@odata.context": SERVICE + "$metadata#Persons/$entity",
            "@odata.id": SERVICE + "Persons(1)",
            "@odata.type": "#ODataDemo.Person",
            "@odata.editLink": "Persons(1)",
            "@odata.etag": "W/\"1\"",
            "ID": 1,
            "Name": "Ann",
            "Name@odata.type": "#Edm.String",
            "Photo@odata.mediaReadLink": "Persons(1)/Photo",
            "Address": {
                "@odata.type": "#ODataDemo.Address",
                "@odata.readLink": "x",
                "City": "Bristol"},
            "PreviousAddresses": [
                {"@odata.etag": "x", "City": "Leeds"}, None, 3]}
        result = payload.format_request_payload(data)
        self.assertTrue(result == {
            "@odata.id": SERVICE + "Persons(1)",
            "@odata.type": "#ODataDemo.Person",
            "ID": 1,
            "Name": "Ann",
            "Name@odata.type": "#Edm.String",
            "Address": {
                "@odata.type": "#ODataDemo.Address",
                "City": "Bristol"},
            "PreviousAddresses": [{"City": "Leeds"}, None, 3]})
        # the input is unchanged
        self.assertTrue("@odata.context" in data)
        self.assertTrue("@odata.etag" in data["PreviousAddresses"][0])
        self.assertTrue(payload.format_request_payload(42) == 42)
        self.assertTrue(payload.format_request_payload(None) is None)
        self.assertTrue(payload.format_request_payload([]) == [])

    def test_write(self):
        p = payload.Payload()
        text = p.write({"@odata.context": "x", "Name": "Ann"})
        self.assertTrue(json.loads(text) == {"Name": "Ann"})
        text = p.write({
            "Length": datetime.timedelta(hours=1, minutes=30),
            "When": dates.parse_datetime_offset("2013-01-01T10:30:00+01:00")})
        self.assertTrue(json.loads(text) == {
            "Length": "P00DT01H30M00S",
            "When": "2013-01-01T10:30:00+01:00"})
        try:
            p.write({"Value": object()})
            self.fail("Serialized unknown object")
        except TypeError:
            pass


class Context(object):

    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)


class HandlerTests(unittest.TestCase):

    def setUp(self):        # noqa
        self.model = load_demo()

    def test_parser(self):
        result = payload.json_parser(json.dumps(ENTRY), {
            "metadata": self.model})
        self.assertTrue(result["@odata.id"] == SERVICE + "Products(1)")
        result = payload.json_parser(json.dumps(ENTRY), {
            "metadata": self.model,
            "content_type": "application/json;odata.metadata=none"})
        self.assertTrue(result == ENTRY)
        result = payload.json_parser(json.dumps(ENTRY), Context(
            metadata=self.model,
            content_type="application/json;odata.metadata=full",
            recognize_dates=True))
        self.assertTrue(isinstance(result["ReleaseDate"], str))
        self.assertTrue(result["ReleaseDate@odata.type"] == "#String")
        result = payload.json_parser(json.dumps(ENTRY), {})
        self.assertTrue(result == ENTRY)

    def test_parser_strict(self):
        src = json.dumps({"@odata.context": SERVICE + "$metadata#Unknown"})
        try:
            payload.json_parser(src, {"metadata": self.model, "strict": True})
            self.fail("Strict parse of unknown entity set")
        except errors.UnclassifiedFragment:
            pass

    def test_parser_binary_key(self):
        src = json.dumps({
            "@odata.context": SERVICE + "$metadata#Documents/$entity",
            "Checksum": "_-8="})
        result = payload.json_parser(src, {"metadata": self.model})
        self.assertTrue(result["@odata.editLink"] == "Documents(X'FFEF')")
        src = json.dumps({
            "@odata.context": SERVICE + "$metadata#Documents/$entity",
            "Checksum": "A"})
        result = payload.json_parser(src, {"metadata": self.model})
        self.assertTrue(result["@odata.type"] == "#ODataDemo.Document")
        self.assertFalse("@odata.id" in result)

    def test_parser_bad_content_type(self):
        for content_type in ("application/json; odata.metadata = minimal",
                             "application/json;odata.metadata=",
                             "application"):
            result = payload.json_parser(json.dumps(ENTRY), {
                "metadata": self.model, "content_type": content_type})
            # the default, minimal metadata, is assumed
            self.assertTrue(result["@odata.id"] == SERVICE + "Products(1)")

    def test_parser_error(self):
        try:
            payload.json_parser("{", {"metadata": self.model})
            self.fail("Parsed bad JSON")
        except ValueError:
            pass

    def test_serializer(self):
        context = {}
        text = payload.json_serializer(
            {"Name": "Ann", "@odata.editLink": "x"}, context)
        self.assertTrue(json.loads(text) == {"Name": "Ann"})
        self.assertTrue(context["content_type"] == params.APPLICATION_JSON)
        self.assertTrue(context["data_service_version"] == "4.0")
        context = {"content_type": "application/json;odata.metadata=minimal",
                   "data_service_version": "4.01"}
        text = payload.json_serializer({"Name": "Ann"}, context)
        self.assertTrue(json.loads(text) == {"Name": "Ann"})
        self.assertTrue(context["data_service_version"] == "4.01")
        context = {"data_service_version": "3.0"}
        payload.json_serializer({"Name": "Ann"}, context)
        self.assertTrue(context["data_service_version"] == "4.0")
        context = {}
        self.assertTrue(payload.json_serializer(None, context) is None)
        self.assertTrue(context["data_service_version"] == "4.0")

    def test_serializer_other(self):
        context = {"content_type": "text/plain"}
        self.assertTrue(payload.json_serializer({"Name": "Ann"}, context) is
                        None)
        self.assertFalse("data_service_version" in context)
        context = {"content_type": params.MediaType("application", "xml")}
        self.assertTrue(payload.json_serializer({"Name": "Ann"}, context) is
                        None)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG, format="%(levelname)s %(message)s")
    unittest.main()
