from TM1link.Exceptions.Exceptions import TM1linkException, TM1linkConfigException, TM1linkTransportException, \
    TM1linkTimeout, TM1linkRestException, TM1linkAuthFailure, TM1linkForbidden, TM1linkNotFound, TM1linkConflict, \
    TM1linkServerError, TM1linkProtocolException, TM1linkInvalidArgument, TM1linkInvalidMDXException, \
    TM1linkVersionException, TM1linkVersionDeprecationException, TM1linkUnsupportedAuth, TM1linkPermissionException, \
    TM1linkNotAdminException, TM1linkNotDataAdminException, TM1linkNotSecurityAdminException, \
    TM1linkNotOpsAdminException, TM1linkProcessFailed, raise_for_status
