"""Docker Engine API access: client, context lookup, containers, images, networks and volumes."""