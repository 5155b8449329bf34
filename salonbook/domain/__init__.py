"""Business domains - each with its repository, schemas, service and router"""
