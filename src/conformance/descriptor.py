import os
from dataclasses import dataclass
from typing import ClassVar

import yaml
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
)

from functions import Consts, RenderError, ResourceNotFound, logger_cluster

from .poller import ConditionPoller


class TemplateRenderer:
    """
    Materializes resource templates into manifests.

    A bare file name is looked up in ``search_path`` (defaults to ``Consts.templates_path``);
    anything with a directory part is used as given. Every placeholder must be supplied.
    """

    def __init__(self, search_path=None):
        self.search_path = search_path or Consts.templates_path

    def _locate(self, template):
        if os.path.dirname(template):
            return os.path.split(os.path.abspath(template))
        return self.search_path, template

    def render(self, template, parameters) -> str:
        directory, name = self._locate(template)
        file_loader = FileSystemLoader(directory)
        env = Environment(loader=file_loader, undefined=StrictUndefined, keep_trailing_newline=True)
        env.trim_blocks = True
        env.lstrip_blocks = True
        try:
            return env.get_template(name).render(**parameters)
        except TemplateNotFound:
            raise RenderError(template, f"not found in {directory}")
        except TemplateSyntaxError as e:
            raise RenderError(template, f"line {e.lineno}: {e.message}")
        except UndefinedError as e:
            raise RenderError(template, f"missing parameter ({e.message})")

    def render_manifests(self, template, parameters) -> list:
        text = self.render(template, parameters)
        try:
            documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
        except yaml.YAMLError as e:
            raise RenderError(template, f"output is not valid YAML: {e}")

        if not documents:
            raise RenderError(template, "output has no resources")
        for doc in documents:
            if not isinstance(doc, dict) or "kind" not in doc:
                raise RenderError(template, f"output document is not a resource: {doc!r}")
        return documents


@dataclass
class ResourceDescriptor:
    """
    A cluster resource backed by a template.

    Descriptors carry no state about the cluster; every call reads or writes through the
    given ClusterContext. ``namespace=None`` resolves to the context namespace.
    """
    name: str
    namespace: str = None
    template: str = None

    kind: ClassVar[str] = ""
    default_template: ClassVar[str] = ""

    def resolve_namespace(self, context):
        return self.namespace or context.namespace

    def parameters(self, namespace=None):
        return {"NAME": self.name, "NAMESPACE": namespace or self.namespace or ""}

    @property
    def ref(self):
        return f"{self.kind}/{self.name}"

    def owned_refs(self):
        """Resources removed by ``delete``; one per document the template creates."""
        return [self.ref]

    def render(self, renderer=None, namespace=None) -> list:
        renderer = renderer or TemplateRenderer()
        return renderer.render_manifests(self.template or self.default_template, self.parameters(namespace))

    def create(self, context, renderer=None) -> list:
        namespace = self.resolve_namespace(context)
        created = []
        for manifest in self.render(renderer, namespace):
            created.append(context.client.create(manifest, namespace))
        logger_cluster.info(f"Created {self.ref} in {namespace}")
        return created

    def delete(self, context):
        namespace = self.resolve_namespace(context)
        for ref in self.owned_refs():
            try:
                context.client.delete(ref, namespace=namespace, ignore_not_found=True)
            except ResourceNotFound:
                logger_cluster.debug(f"{ref} in {namespace} already gone")
        logger_cluster.info(f"Deleted {self.ref} in {namespace}")

    def get(self, context, path=None):
        return context.client.get(self.ref, namespace=self.resolve_namespace(context), path=path)

    def patch(self, context, patch, patch_type="merge"):
        return context.client.patch(self.ref, namespace=self.resolve_namespace(context),
                                    patch=patch, patch_type=patch_type)

    def annotate(self, context, annotations):
        return context.client.annotate(self.ref, namespace=self.resolve_namespace(context),
                                       annotations=annotations)

    def wait_absent(self, context, poller=None, interval=None, timeout=None):
        poller = poller or ConditionPoller(interval=Consts.DISAPPEAR_INTERVAL, timeout=Consts.DISAPPEAR_TIMEOUT)
        return poller.poll_absent(lambda: self.get(context, "{.metadata.name}"),
                                  interval=interval, timeout=timeout,
                                  description=f"{self.ref} deletion")


@dataclass
class IngressControllerDescriptor(ResourceDescriptor):
    domain: str = ""
    shard: str = ""
    replicas: int = 1

    kind: ClassVar[str] = "ingresscontroller"
    default_template: ClassVar[str] = "ingresscontroller.yaml.j2"

    def resolve_namespace(self, context):
        return self.namespace or context.operator_namespace

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(DOMAIN=self.domain, SHARD=self.shard, REPLICAS=self.replicas)
        return params


@dataclass
class IngressControllerHostPortDescriptor(IngressControllerDescriptor):
    """Ingress controller published on host network ports, for clusters without a load balancer."""
    http_port: int = 80
    https_port: int = 443
    stats_port: int = 1936

    default_template: ClassVar[str] = "ingresscontroller-hostport.yaml.j2"

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(HTTPPORT=self.http_port, HTTPSPORT=self.https_port, STATSPORT=self.stats_port)
        return params


@dataclass
class RouteDescriptor(ResourceDescriptor):
    domain: str = ""
    subdomain: str = ""
    service_name: str = "service-unsecure"

    kind: ClassVar[str] = "route"
    default_template: ClassVar[str] = "route.yaml.j2"

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(DOMAIN=self.domain, SUBDOMAIN_NAME=self.subdomain, SERVICE_NAME=self.service_name)
        return params


@dataclass
class IngressDescriptor(ResourceDescriptor):
    domain: str = ""
    service_name: str = "service-unsecure"

    kind: ClassVar[str] = "ingress"
    default_template: ClassVar[str] = "ingress.yaml.j2"

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(DOMAIN=self.domain, SERVICE_NAME=self.service_name)
        return params


@dataclass
class WebServerDeployDescriptor(ResourceDescriptor):
    """Backend web server deployment with a secure and an unsecure service in front of it."""
    svc_secure_name: str = "service-secure"
    svc_unsecure_name: str = "service-unsecure"
    replicas: int = 1
    image: str = "quay.io/openshifttest/nginx-alpine@sha256:cee6930776b92dc1e93b73f9e5965925d49cff3d2e91e1d071c2f0ff72cbca29"

    kind: ClassVar[str] = "deployment"
    default_template: ClassVar[str] = "web-server-deploy.yaml.j2"

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(DEPLOY_NAME=self.name, SVC_SECURE_NAME=self.svc_secure_name,
                      SVC_UNSECURE_NAME=self.svc_unsecure_name, REPLICAS=self.replicas, IMAGE=self.image)
        return params

    def owned_refs(self):
        return [self.ref, f"service/{self.svc_secure_name}", f"service/{self.svc_unsecure_name}"]


@dataclass
class GatewayDescriptor(ResourceDescriptor):
    hostname: str = ""
    gateway_class: str = "openshift-default"

    kind: ClassVar[str] = "gateway"
    default_template: ClassVar[str] = "gateway.yaml.j2"

    def resolve_namespace(self, context):
        return self.namespace or context.router_namespace

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(HOSTNAME=self.hostname, GATEWAY_CLASS=self.gateway_class)
        return params


@dataclass
class HTTPRouteDescriptor(ResourceDescriptor):
    gateway_name: str = ""
    gateway_namespace: str = ""
    hostname: str = ""
    service_name: str = "service-unsecure"
    port: int = 27017

    kind: ClassVar[str] = "httproute"
    default_template: ClassVar[str] = "httproute.yaml.j2"

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(GWNAME=self.gateway_name, GWNAMESPACE=self.gateway_namespace,
                      HOSTNAME=self.hostname, SERVICE_NAME=self.service_name, PORT=self.port)
        return params


@dataclass
class IPFailoverDescriptor(ResourceDescriptor):
    image: str = ""
    vip: str = ""
    ha_interface: str = "br-ex"
    replicas: int = 2

    kind: ClassVar[str] = "deployment"
    default_template: ClassVar[str] = "ipfailover.yaml.j2"

    def parameters(self, namespace=None):
        params = super().parameters(namespace)
        params.update(IMAGE=self.image, VIP=self.vip, HAINTERFACE=self.ha_interface, REPLICAS=self.replicas)
        return params

    def owned_refs(self):
        return [self.ref, f"serviceaccount/{self.name}"]
