"ClassCast account provisioning"
