#
# Copyright (c) 2021  StorPool.
# All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
""" Type definitions for the cluster health, replica and event records. """

import re

from .sfcatch import error
from .sftype import JsonObject, sfTypeFun, maybe, withDefault, discriminator, union, Timestamp, Duration, Guid
from .sfjson import dumps, UNSET
from .sfutils import truncate_text, INFINITE_DURATION, MAX_DESCRIPTION_LENGTH, TRUNCATION_MARKER


# Simple validator functions
def regex(argName, regex):
    _regex = re.compile(regex)

    def validator(string):
        if not isinstance(string, str):
            error('Invalid {argName} {argVal!r}. Must be a string', argName=argName, argVal=string)
        elif not _regex.match(string):
            error('Invalid {argName} "{argVal}". Must match {regex}', argName=argName, argVal=string, regex=regex)

        return string

    return sfTypeFun(argName, validator)


def oneOf(argName, *accepted):
    accepted = list(accepted)
    _accepted = frozenset(accepted)

    def validator(value):
        if not isinstance(value, str) or value not in _accepted:
            error("Invalid {argName}: {value!r}. Must be one of {accepted}", argName=argName, value=value, accepted=", ".join(map(dumps, accepted)))
        return value

    return sfTypeFun(argName, validator)


def flags(argName, allBits):
    def validator(val):
        if not isinstance(val, int) or isinstance(val, bool):
            error('Invalid {argName} {val!r}. Must be an integer', argName=argName, val=val)
        elif val < 0 or val > allBits:
            error('Invalid {argName} {val}. Must be between 0 and {max}', argName=argName, val=val, max=allBits)

        return val

    return sfTypeFun(argName, validator)


def truncatedText(argName, size, marker):
    def validator(text):
        if not isinstance(text, str):
            error('Invalid {argName} {text!r}. Must be a string', argName=argName, text=text)

        return truncate_text(text, size, marker)

    return sfTypeFun(argName, validator)


# Health state filter bits
HEALTH_STATE_FILTER_DEFAULT = 0
HEALTH_STATE_FILTER_NONE = 1
HEALTH_STATE_FILTER_OK = 2
HEALTH_STATE_FILTER_WARNING = 4
HEALTH_STATE_FILTER_ERROR = 8
HEALTH_STATE_FILTER_ALL = 65535

HEALTH_STATE_FILTER_BITS = {
    'Ok': HEALTH_STATE_FILTER_OK,
    'Warning': HEALTH_STATE_FILTER_WARNING,
    'Error': HEALTH_STATE_FILTER_ERROR,
}


def health_state_filter(*states):
    """ Build a filter value matching any of the given health states. """
    res = HEALTH_STATE_FILTER_DEFAULT
    for state in states:
        if state not in HEALTH_STATE_FILTER_BITS:
            error('No filter bit for the {state!r} health state', state=state)
        res |= HEALTH_STATE_FILTER_BITS[state]
    return res


def health_state_matches(stateFilter, healthState):
    """ Check whether a health state passes a health state filter. """
    if stateFilter in (HEALTH_STATE_FILTER_DEFAULT, HEALTH_STATE_FILTER_ALL):
        return True
    return bool(stateFilter & HEALTH_STATE_FILTER_BITS.get(healthState, 0))


HEALTH_STATES = ('Invalid', 'Ok', 'Warning', 'Error', 'Unknown')

HealthState = oneOf('HealthState', *HEALTH_STATES)
HealthStateFilter = flags('HealthStateFilter', HEALTH_STATE_FILTER_ALL)
ReplicaStatus = oneOf('ReplicaStatus', 'Invalid', 'InBuild', 'Standby', 'Ready', 'Down', 'Dropped')
ReplicaRole = oneOf('ReplicaRole', 'Unknown', 'None', 'Primary', 'IdleSecondary', 'ActiveSecondary')
ServiceKind = oneOf('ServiceKind', 'Invalid', 'Stateless', 'Stateful')
ApplicationDefinitionKind = oneOf('ApplicationDefinitionKind', 'Invalid', 'ServiceFabricApplicationDescription', 'Compose')

NodeName = regex('NodeName', r'^\S.*$')
ReplicaId = regex('ReplicaId', r'^-?[0-9]+$')
SequenceNumber = regex('SequenceNumber', r'^[0-9]+$')
ApplicationName = regex('ApplicationName', r'^fabric:/.*$')
ServiceName = regex('ServiceName', r'^fabric:/.+$')
PartitionId = Guid
Description = truncatedText('Description', MAX_DESCRIPTION_LENGTH, TRUNCATION_MARKER)


class HealthStateFilterBase(object):
    """ Shared behavior of the health state filter records. """

    def matches(self, healthState):
        """ Check whether an entity's health state passes this filter. """
        return health_state_matches(self.healthStateFilter, healthState)


@JsonObject(sourceId=str, property=str, healthState=HealthState,
            timeToLiveInMilliSeconds=maybe(Duration), description=maybe(Description),
            sequenceNumber=maybe(SequenceNumber), removeWhenExpired=maybe(bool))
class HealthInformation(object):
    '''
    Common health report information; included in all the health reports
    sent to the health store and in all the health events returned by
    health queries.

    sourceId: The client, watchdog or system component that generated the report.
    property: The property of the entity that the report is about.
    healthState: The reported health state.
    timeToLiveInMilliSeconds: How long the report is valid; infinite if not set.
    description: Free text; longer than 4096 characters is truncated with a "[Truncated]" marker.
    sequenceNumber: A numeric string used by the health store to detect stale reports.
    removeWhenExpired: Remove the report when it expires instead of evaluating it as an error.
    '''

    def effectiveTimeToLive(self):
        """ Return the time to live, an unset one meaning "infinite". """
        if self.timeToLiveInMilliSeconds is UNSET:
            return INFINITE_DURATION
        return self.timeToLiveInMilliSeconds


@JsonObject(isExpired=maybe(bool), sourceUtcTimestamp=maybe(Timestamp),
            lastModifiedUtcTimestamp=maybe(Timestamp), lastOkTransitionAt=maybe(Timestamp),
            lastWarningTransitionAt=maybe(Timestamp), lastErrorTransitionAt=maybe(Timestamp))
class HealthEvent(HealthInformation):
    '''
    A health report as stored and returned by the health store.

    isExpired: Whether the time to live of the report has passed.
    sourceUtcTimestamp: When the report was generated by its source.
    lastModifiedUtcTimestamp: When the report was last updated in the health store.
    '''


@JsonObject(nodeNameFilter=maybe(NodeName), healthStateFilter=withDefault(HealthStateFilter, 0))
class NodeHealthStateFilter(HealthStateFilterBase):
    '''
    Selects the nodes to be included in the cluster health chunk.

    nodeNameFilter: Only match the node with this name.
    healthStateFilter: The health states to match, an OR of the filter bits.
    '''


@JsonObject(replicaOrInstanceIdFilter=maybe(ReplicaId), healthStateFilter=withDefault(HealthStateFilter, 0))
class ReplicaHealthStateFilter(HealthStateFilterBase):
    '''
    Selects the replicas to be included as children of a partition.

    replicaOrInstanceIdFilter: Only match the replica or instance with this id.
    healthStateFilter: The health states to match, an OR of the filter bits.
    '''


@JsonObject(partitionIdFilter=maybe(PartitionId), healthStateFilter=withDefault(HealthStateFilter, 0),
            replicaFilters=maybe([ReplicaHealthStateFilter]))
class PartitionHealthStateFilter(HealthStateFilterBase):
    '''
    Selects the partitions to be included as children of a service.

    partitionIdFilter: Only match the partition with this id.
    replicaFilters: The filters for the replicas of the matched partitions.
    '''


@JsonObject(serviceNameFilter=maybe(ServiceName), healthStateFilter=withDefault(HealthStateFilter, 0),
            partitionFilters=maybe([PartitionHealthStateFilter]))
class ServiceHealthStateFilter(HealthStateFilterBase):
    '''
    Selects the services to be included as children of an application.

    serviceNameFilter: Only match the service with this name.
    partitionFilters: The filters for the partitions of the matched services.
    '''


@JsonObject(serviceManifestNameFilter=maybe(str), servicePackageActivationIdFilter=maybe(str),
            healthStateFilter=withDefault(HealthStateFilter, 0))
class DeployedServicePackageHealthStateFilter(HealthStateFilterBase):
    '''
    Selects the deployed service packages to be included as children of
    a deployed application.

    serviceManifestNameFilter: Only match the service package with this manifest name.
    servicePackageActivationIdFilter: Only match the service package with this activation id.
    '''


@JsonObject(nodeNameFilter=maybe(NodeName), healthStateFilter=withDefault(HealthStateFilter, 0),
            deployedServicePackageFilters=maybe([DeployedServicePackageHealthStateFilter]))
class DeployedApplicationHealthStateFilter(HealthStateFilterBase):
    '''
    Selects the deployed applications to be included as children of an
    application; only applied if the parent application matches a filter.

    nodeNameFilter: Only match the application deployed on this node.
    healthStateFilter: The health states to match, an OR of the filter bits.
    deployedServicePackageFilters: The filters for the deployed service packages.
    '''


@JsonObject(applicationNameFilter=maybe(ApplicationName), applicationTypeNameFilter=maybe(str),
            healthStateFilter=withDefault(HealthStateFilter, 0),
            serviceFilters=maybe([ServiceHealthStateFilter]),
            deployedApplicationFilters=maybe([DeployedApplicationHealthStateFilter]))
class ApplicationHealthStateFilter(HealthStateFilterBase):
    '''
    Selects the applications to be included in the cluster health chunk.

    applicationNameFilter: Only match the application with this name.
    applicationTypeNameFilter: Only match the applications of this type.
    '''


@JsonObject(nodeFilters=maybe([NodeHealthStateFilter]), applicationFilters=maybe([ApplicationHealthStateFilter]))
class ClusterHealthChunkQueryDescription(object):
    '''
    The filters of a cluster health chunk query.
    '''


@JsonObject(healthState=maybe(HealthState), replicaOrInstanceId=maybe(ReplicaId))
class ReplicaHealthStateChunk(object):
    '''
    The health state of a replica or stateless instance.
    '''


@JsonObject(items=maybe([ReplicaHealthStateChunk]))
class ReplicaHealthStateChunkList(object):
    '''
    The replica health state chunks that respect the input filters.
    '''


@JsonObject(healthState=maybe(HealthState), partitionId=maybe(PartitionId),
            replicaHealthStateChunks=maybe(ReplicaHealthStateChunkList))
class PartitionHealthStateChunk(object):
    '''
    The health state of a partition and of its matching replicas.
    '''


@JsonObject(items=maybe([PartitionHealthStateChunk]))
class PartitionHealthStateChunkList(object):
    '''
    The partition health state chunks that respect the input filters.
    '''


@JsonObject(healthState=maybe(HealthState), serviceName=maybe(ServiceName),
            partitionHealthStateChunks=maybe(PartitionHealthStateChunkList))
class ServiceHealthStateChunk(object):
    '''
    The health state of a service and of its matching partitions.
    '''


@JsonObject(items=maybe([ServiceHealthStateChunk]))
class ServiceHealthStateChunkList(object):
    '''
    The service health state chunks that respect the input filters.
    '''


@JsonObject(replicaStatus=ReplicaStatus, healthState=HealthState, nodeName=maybe(NodeName),
            address=maybe(str), lastInBuildDurationInSeconds=maybe(str))
class ReplicaInfoBase(object):
    '''
    replicaStatus: The status of the replica.
    healthState: The aggregated health state of the replica.
    nodeName: The name of the node the replica is placed on.
    address: The address the replica is listening on.
    lastInBuildDurationInSeconds: How long the replica spent in build the last time.
    '''


@JsonObject(serviceKind=discriminator('Stateful', ServiceKind), replicaRole=ReplicaRole, replicaId=maybe(ReplicaId))
class StatefulServiceReplicaInfo(ReplicaInfoBase):
    '''
    A replica of a stateful service partition.

    replicaRole: The role of the replica in the partition.
    replicaId: The id of the replica.
    '''


@JsonObject(serviceKind=discriminator('Stateless', ServiceKind), instanceId=maybe(ReplicaId))
class StatelessServiceInstanceInfo(ReplicaInfoBase):
    '''
    An instance of a stateless service partition.

    instanceId: The id of the instance.
    '''


ReplicaInfo = union('ServiceKind', {
    'Stateful': StatefulServiceReplicaInfo,
    'Stateless': StatelessServiceInstanceInfo,
})


@JsonObject(continuationToken=maybe(str), items=maybe([ReplicaInfo]))
class PagedReplicaInfoList(object):
    '''
    One page of the replicas or instances of a partition.

    continuationToken: Pass this to the next query to fetch the next page; not set on the last page.
    items: The replicas on this page.
    '''


@JsonObject(eventInstanceId=Guid, timeStamp=Timestamp, hasCorrelatedEvents=maybe(bool), applicationId=str)
class ApplicationEventBase(object):
    '''
    eventInstanceId: The unique id of the event.
    timeStamp: When the event was generated.
    hasCorrelatedEvents: Whether there are other events correlated with this one.
    applicationId: The identity of the application, its name without the "fabric:" scheme.
    '''


@JsonObject(kind=discriminator('ApplicationCreated'), applicationTypeName=str,
            applicationTypeVersion=str, applicationDefinitionKind=ApplicationDefinitionKind)
class ApplicationCreatedEvent(ApplicationEventBase):
    pass


@JsonObject(kind=discriminator('ApplicationDeleted'), applicationTypeName=str, applicationTypeVersion=str)
class ApplicationDeletedEvent(ApplicationEventBase):
    pass


@JsonObject(kind=discriminator('ApplicationUpgradeCompleted'), applicationTypeName=str,
            applicationTypeVersion=str, overallUpgradeElapsedTimeInMs=float)
class ApplicationUpgradeCompletedEvent(ApplicationEventBase):
    pass


@JsonObject(kind=discriminator('ApplicationUpgradeRollbackCompleted'), applicationTypeName=str,
            applicationTypeVersion=str, failureReason=str, overallUpgradeElapsedTimeInMs=float)
class ApplicationUpgradeRollbackCompleteEvent(ApplicationEventBase):
    '''
    An application upgrade was rolled back.

    failureReason: Why the upgrade failed.
    overallUpgradeElapsedTimeInMs: How long the upgrade and the rollback took.
    '''


@JsonObject(kind=discriminator('ApplicationHealthReportExpired'), applicationInstanceId=int,
            sourceId=str, property=str, healthState=HealthState, timeToLiveMs=int, sequenceNumber=int,
            description=Description, removeWhenExpired=bool, sourceUtcTimestamp=Timestamp)
class ApplicationHealthReportExpiredEvent(ApplicationEventBase):
    '''
    A health report on an application expired.
    '''


ApplicationEvent = union('Kind', {
    'ApplicationCreated': ApplicationCreatedEvent,
    'ApplicationDeleted': ApplicationDeletedEvent,
    'ApplicationUpgradeCompleted': ApplicationUpgradeCompletedEvent,
    'ApplicationUpgradeRollbackCompleted': ApplicationUpgradeRollbackCompleteEvent,
    'ApplicationHealthReportExpired': ApplicationHealthReportExpiredEvent,
})
