#! /usr/bin/env python
"""The module creates some basic constants to describe the package."""

title_name = "jsonlight"
name = "jsonlight"
copyright = "\xA92008-2017, Steve Lay"

major_version = "0.1"
build_date = "20261019"
version = "%s.%s" % (major_version, build_date)

title = (
    "jsonlight: "
    "OData JSON payload codec driven by context URLs and EDM models")

home = "http://www.pyslet.org/"
