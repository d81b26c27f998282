#!/usr/bin/env python

from setuptools import setup

import clcred

setup(name='clcred',
      version=clcred.VERSION,
      description='Camenisch-Lysyanskaya anonymous credentials with selective disclosure',
      packages=['clcred'],
      license="2-clause BSD",
      long_description="""CL signatures, disclosure proofs and blind issuance proofs over an RSA group, bound together under one Fiat-Shamir challenge. Built on the petlib big numbers.""",
      python_requires=">=3.6",

      install_requires=[
            "petlib >= 0.0.45",
            "msgpack >= 1.0.0",
            "pytest >= 2.5.0",
      ],
      extras_require={
            "test": [
                  "pytest >= 2.5.0",
                  "pytest-cov >= 1.8.1",
                  "paver >= 1.2.3",
            ],
      },
      zip_safe=False,
)
