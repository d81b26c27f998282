import os.path
import re

from paver.tasks import task
from paver.easy import sh


def tell(x):
    print()
    print(("-"*10)+ str(x) + ("-"*10))
    print()

@task
def build(quiet=True):
    """ Builds the clcred distribution. """
    tell("Build dist")
    sh('python setup.py sdist', capture=quiet)

@task
def test(quiet=False):
    """ Run the clcred test suite, with coverage. """
    tell("Run the tests")
    sh('pytest -v --cov=clcred --cov-report=term-missing clcred', capture=quiet)

@task
def lint(quiet=False):
    """ Run the python linter on clcred. """
    tell("Run pylint on the library")
    sh('pylint clcred', capture=quiet)

@task
def version(quiet=False):
    """ Print the clcred version. """
    lib = open(os.path.join("clcred", "__init__.py")).read()
    v = re.findall("VERSION.*=.*['\"](.*)['\"]", lib)[0]
    tell("clcred version %s" % v)

@task
def wc(quiet=False):
    """ Count the clcred library code lines. """
    tell("Counting code lines")

    print("\nLibrary code:")
    sh('wc -l clcred/*.py', capture=quiet)

    print("\nAdministration code:")
    sh('wc -l pavement.py setup.py', capture=quiet)
