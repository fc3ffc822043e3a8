"""Default service, network and SSH container definitions."""