SERVICE_NAME = "communicator"
