from npm_proxy.tests.fixtures_mirrors import *  # noqa
