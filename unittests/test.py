#! /usr/bin/env python
"""Runs unit tests on all jsonlight modules"""

import unittest
import logging
import sys

import test_jsonlight_annotate
import test_jsonlight_context
import test_jsonlight_dates
import test_jsonlight_edm
import test_jsonlight_literals
import test_jsonlight_params
import test_jsonlight_payload


all_tests = unittest.TestSuite()
all_tests.addTest(test_jsonlight_annotate.suite())
all_tests.addTest(test_jsonlight_context.suite())
all_tests.addTest(test_jsonlight_dates.suite())
all_tests.addTest(test_jsonlight_edm.suite())
all_tests.addTest(test_jsonlight_literals.suite())
all_tests.addTest(test_jsonlight_params.suite())
all_tests.addTest(test_jsonlight_payload.suite())


def suite():
    global all_tests
    return all_tests


def load_tests(loader, tests, pattern):
    return suite()

if __name__ == "__main__":
    logging.basicConfig(level=logging.ERROR)
    result = unittest.TextTestRunner(verbosity=0).run(suite())
    sys.exit(not result.wasSuccessful())
