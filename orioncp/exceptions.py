# -*- coding: utf-8 -*-
"""Errors raised when talking to an Orion server or reading local settings."""


class OrionError(RuntimeError):
    pass


class ConnectionFailure(OrionError):

    def __init__(self, server, message):
        super().__init__("{0}: {1}".format(server, message))
        self.server = server


class QueryFailure(OrionError):

    def __init__(self, server, message):
        super().__init__("{0}: {1}".format(server, message))
        self.server = server


class WriteFailure(OrionError):

    def __init__(self, node_uri, message):
        super().__init__("{0}: {1}".format(node_uri, message))
        self.node_uri = node_uri


class ConfigError(ValueError):
    pass
