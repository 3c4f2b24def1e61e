"""MCP server for the Salesforce object catalog."""
