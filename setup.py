#!/usr/bin/env python

import logging
import sys
import jsonlight.info

if sys.hexversion < 0x03050000:
    logging.error("jsonlight requires Python Version 3.5 (or greater)")
else:
    from setuptools import setup

    with open('README.rst') as f:
        long_description = f.read()

    setup(name=jsonlight.info.name,
          version=jsonlight.info.version,
          description=jsonlight.info.title,
          long_description=long_description,
          author="Steve Lay",
          author_email="steve.w.lay@gmail.com",
          url=jsonlight.info.home,
          packages=['jsonlight'],
          classifiers=['Development Status :: 3 - Alpha',
                       'Intended Audience :: Developers',
                       'Natural Language :: English',
                       'License :: OSI Approved :: BSD License',
                       'Operating System :: OS Independent',
                       'Programming Language :: Python',
                       'Programming Language :: Python :: 3',
                       'Topic :: Internet :: WWW/HTTP',
                       'Topic :: Software Development :: '
                       'Libraries :: Python Modules']
          )
