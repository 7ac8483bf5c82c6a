# -*- coding: utf-8 -*-
"""SolarWinds Class Overview

The following class wraps a single SWIS session against a SolarWinds Orion server.  It exposes the node custom
property administration actions (create, modify, delete, read and set values) as simple getter and setter methods,
along with the query and patch primitives used by the classification remediation job.

The administration helpers log and return an empty sentinel on error so they can be chained from scripts.  The
primitives used by the remediation job (connect, query, list_custom_property_fields, update_node_custom_properties)
raise ConnectionFailure, QueryFailure or WriteFailure instead, so the caller can decide which unit of work to skip.

"""

import logging

import requests
from orionsdk import SwisClient
from requests.packages import urllib3

from orioncp.exceptions import ConnectionFailure, QueryFailure, WriteFailure

NODE_CUSTOM_PROPERTIES = 'Orion.NodesCustomProperties'


class SolarWinds:

    def __init__(self, npm_server, username, password, ssl_verify=False, logger=None):

        self.logger = logger or logging.getLogger(__name__)
        self.server = npm_server

        if not ssl_verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.swis = SwisClient(npm_server, username, password, verify=ssl_verify)
        self.logger.info("__init__ - SWIS client created for %s.", npm_server)

    @classmethod
    def connect(cls, server, username, password, ssl_verify=False, logger=None):
        """ Creates the SolarWinds object and proves the session works with a test query.

            Args:
                server(string): The name or IP of the target SolarWinds Orion server.
                username(string): The username to log in with.
                password(string): The password to log in with.
                ssl_verify(boolean): Whether to validate the server certificate.
                logger(Logger): Optional logger to use instead of the module logger.

            Returns:
                (SolarWinds): A connected SolarWinds object.

            Raises:
                ConnectionFailure: The server could not be reached or rejected the credentials.

        """

        instance = cls(server, username, password, ssl_verify=ssl_verify, logger=logger)

        try:
            instance.swis.query("SELECT TOP 1 Name, Version FROM Orion.Module")

        except requests.ConnectionError as error:
            instance.logger.error("connect - connection error: %s", error)
            raise ConnectionFailure(server, "cannot connect, ensure the address is correct and reachable") from error

        except requests.HTTPError as error:
            instance.logger.error("connect - HTTP error: %s", error)
            raise ConnectionFailure(server, "login failed for user {0}, check username/password".format(username)) \
                from error

        except Exception as error:
            instance.logger.error("connect - error: %s", error)
            raise ConnectionFailure(server, str(error)) from error

        instance.logger.info("connect - session to %s established.", server)
        return instance

    @staticmethod
    def validate_login_credentials(server, username, password, ssl_verify=False):
        """ Checks whether the supplied credentials work against the provided SolarWinds Orion server.

            Returns:
                True: The login was successful.
                False: The login was not successful.

        """

        try:
            SolarWinds.connect(server, username, password, ssl_verify=ssl_verify)
            return True

        except ConnectionFailure:
            return False

    ###################################################################################################################
    ##  Query and update primitives                                                                                  ##
    ###################################################################################################################

    def query(self, query_text, **params):
        """ Runs a SWQL query and returns the result rows.

            Args:
                query_text(string): The SWQL query, optionally with @named parameters.
                params: Values for the named parameters.

            Returns:
                (list): A list of dictionaries, one per row.

            Raises:
                QueryFailure: The query could not be executed.

        """

        try:
            results = self.swis.query(query_text, **params)
            self.logger.debug("query - query results: %s", results)

        except Exception as error:
            self.logger.error("query - query error: %s", error)
            raise QueryFailure(self.server, str(error)) from error

        return results.get('results', [])

    def list_custom_property_fields(self):
        """ Gets the names of all of the node custom properties defined on the server.

            Raises:
                QueryFailure: The custom property list could not be read.

        """

        rows = self.query("SELECT Field FROM Orion.CustomProperty WHERE TargetEntity = @target",
                          target=NODE_CUSTOM_PROPERTIES)

        return [row['Field'] for row in rows]

    def update_node_custom_properties(self, node_uri, properties):
        """ Writes one or more custom property values to a node in a single update.

            Args:
                node_uri(string): The SWIS URI of the node.
                properties(dictionary): Custom property names mapped to their new values.

            Raises:
                WriteFailure: The update was rejected.  No property in the mapping was written.

        """

        try:
            self.swis.update(node_uri + '/CustomProperties', **properties)
            self.logger.info("update_node_custom_properties - updated %s with %s", node_uri, properties)

        except Exception as error:
            self.logger.error("update_node_custom_properties - update error for %s: %s", node_uri, error)
            raise WriteFailure(node_uri, str(error)) from error

    ###################################################################################################################
    ##  Node custom property administration                                                                          ##
    ###################################################################################################################

    def add_node_custom_property(self, property_name, description, value_type='string', size=100, values=None):
        """ Add a new node custom property using the provided parameters.

            Args:
                property_name(string): The name of the new node property.
                description(string): The description for the new node property.
                value_type(string): The value type for the new node property (string, integer, datetime, single,
                    double, boolean)
                size(integer): The maximum length for string value types.  Ignored for other value types.
                values(list): Optional list of allowed values.  When supplied the property is restricted to them.

            Returns:
                True: The custom property was successfully created.
                False: The custom property was not successfully created.

        """

        try:
            if values:
                results = self.swis.invoke(NODE_CUSTOM_PROPERTIES, 'CreateCustomPropertyWithValues', property_name,
                                           description, value_type, size, "", "", "", "", "", "", list(values))
            else:
                results = self.swis.invoke(NODE_CUSTOM_PROPERTIES, 'CreateCustomProperty', property_name,
                                           description, value_type, size, "", "", "", "", "", "")
            self.logger.info("add_node_custom_property - invoke results: %s", results)

        except Exception as error:
            self.logger.error("add_node_custom_property - invoke error: %s", error)
            return False

        return True

    def modify_node_custom_property(self, property_name, description, size, values):
        """ Replaces the description, size and allowed values of an existing node custom property.

            Returns:
                True: The custom property was successfully modified.
                False: The custom property was not successfully modified.

        """

        try:
            results = self.swis.invoke(NODE_CUSTOM_PROPERTIES, 'ModifyCustomProperty', property_name, description,
                                       size, list(values))
            self.logger.info("modify_node_custom_property - ModifyCustomProperty invoke results: %s", results)

        except Exception as error:
            self.logger.error("modify_node_custom_property - ModifyCustomProperty invoke error: %s", error)
            return False

        return True

    def remove_node_custom_property(self, property_name):
        """ Deletes a node custom property and every value stored in it.

            Returns:
                True: The custom property was successfully deleted.
                False: The custom property was not successfully deleted.

        """

        try:
            results = self.swis.invoke(NODE_CUSTOM_PROPERTIES, 'DeleteCustomProperty', property_name)
            self.logger.info("remove_node_custom_property - DeleteCustomProperty invoke results: %s", results)

        except Exception as error:
            self.logger.error("remove_node_custom_property - DeleteCustomProperty invoke error: %s", error)
            return False

        return True

    def get_custom_property_definitions(self):
        """ Gets the definition of every node custom property.

            Returns:
                (list): A list of dictionaries with the Field, DataType, MaxLength and Description of each property.
                    If the query fails a blank list is returned.

        """

        try:
            results = self.swis.query('SELECT Field, DataType, MaxLength, Description FROM Orion.CustomProperty '
                                      'WHERE TargetEntity = @target ORDER BY Field', target=NODE_CUSTOM_PROPERTIES)
            self.logger.info("get_custom_property_definitions - query results: %s.", results)

        except Exception as error:
            self.logger.error("get_custom_property_definitions - query error: %s.", error)
            return []

        return results['results']

    def get_list_of_values_for_custom_property(self, custom_property_name):
        """ Get a list all of the in use values for the provided custom property.

            Returns:
                (list): A list of all of the in use values.  If the custom property is not found, a blank list is
                    returned.

        """

        try:
            results = self.swis.query('SELECT Value FROM Orion.CustomPropertyValues WHERE Field=@custom_property_name '
                                      'AND TargetEntity=@target', custom_property_name=custom_property_name,
                                      target=NODE_CUSTOM_PROPERTIES)
            self.logger.info("get_list_of_values_for_custom_property - query results: %s.", results)

        except Exception as error:
            self.logger.error("get_list_of_values_for_custom_property - query error: %s.", error)
            return []

        return [value['Value'] for value in results['results']]

    def get_list_of_nodes_for_custom_property_value(self, custom_property_name, custom_property_value):
        """ Gets the captions of the nodes whose custom property holds the provided value.

            Returns:
                (list): A list of node captions.  If no nodes are found a blank list is returned.

        """

        try:
            results = self.swis.query('SELECT N.Caption FROM Orion.Nodes N WHERE N.CustomProperties.{0} = @value '
                                      'ORDER BY N.Caption'.format(custom_property_name),
                                      value=custom_property_value)
            self.logger.info("get_list_of_nodes_for_custom_property_value - query results: %s.", results)

        except Exception as error:
            self.logger.error("get_list_of_nodes_for_custom_property_value - query error: %s.", error)
            return []

        return [node['Caption'] for node in results['results']]

    def get_list_of_nodes_missing_custom_property(self, custom_property_name):
        """ Gets the captions of the nodes where the provided custom property is null or empty. """

        try:
            results = self.swis.query("SELECT N.Caption FROM Orion.Nodes N WHERE N.CustomProperties.{0} IS NULL "
                                      "OR N.CustomProperties.{0} = '' ORDER BY N.Caption".format(custom_property_name))
            self.logger.info("get_list_of_nodes_missing_custom_property - query results: %s.", results)

        except Exception as error:
            self.logger.error("get_list_of_nodes_missing_custom_property - query error: %s.", error)
            return []

        return [node['Caption'] for node in results['results']]

    def get_node_uri(self, node_name):
        """ Gets the URI for a node.

            Args:
                node_name(string): The caption of the node.

            Returns:
                (string): The URI of the node.  If no node is found a blank string is returned.

        """

        try:
            results = self.swis.query('SELECT Caption, Uri FROM Orion.Nodes WHERE Caption = @caption',
                                      caption=node_name)
            self.logger.info("get_node_uri - query results: %s.", results)

            if not results['results']:
                return ""

        except Exception as error:
            self.logger.error("get_node_uri - query error: %s.", error)
            return ""

        return results['results'][0]['Uri']

    def get_node_custom_properties(self, node_name):
        """ Gets all of the custom properties and values for a node.

            Returns:
                (dictionary): Custom property names mapped to their values.  If no node is found a blank dictionary
                    is returned.

        """

        node_uri = self.get_node_uri(node_name)
        if not node_uri:
            return {}

        try:
            results = self.swis.read(node_uri + '/CustomProperties')
            self.logger.info("get_node_custom_properties - read results: %s", results)

        except Exception as error:
            self.logger.error("get_node_custom_properties - read error: %s", error)
            return {}

        return results or {}

    def get_value_for_node_custom_property(self, node_name, custom_property_name):
        """ Get the value for the provided node custom property, or a blank string if the node or property is not
            found.
        """

        return self.get_node_custom_properties(node_name).get(custom_property_name, "")

    def set_node_custom_property(self, node_name, custom_property_name, custom_property_value):
        """ Sets a node custom property to the provided value.

            Args:
                node_name(string): The caption of the node to set the custom property value on.
                custom_property_name(string): The name of the custom property to set the value on.
                custom_property_value(string): The custom property value to set the custom property to.

            Returns:
                True: The custom property is successfully set to the provided value.
                False: The node was not found or the update was rejected.

        """

        node_uri = self.get_node_uri(node_name)
        if not node_uri:
            self.logger.warning("set_node_custom_property - node %s not found.", node_name)
            return False

        try:
            self.update_node_custom_properties(node_uri, {custom_property_name: custom_property_value})

        except WriteFailure:
            return False

        return True
