"""School Portal package.

Feature modules (messages, attendance) each carry a model, a repository
contract with MySQL/in-memory implementations, a service and a thin Flask
controller.
"""
